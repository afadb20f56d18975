"""
Admin API client for MinIO cluster state and healing.

This module provides the AdminClient class for the two admin API areas the
operator relies on: the storage info listing (topology source) and the
heal API (start + incremental status).

AdminClient receives an injected httpx.AsyncClient with base_url set to a
cluster node and auth set to a SigV4 signer (see ecops_minio.auth). All
methods are async and fail loudly on HTTP errors; callers decide whether a
failure is fatal (topology) or per-unit (heal).
"""

import json
from dataclasses import dataclass
from pathlib import Path

import httpx

from ecops_minio.types import HealOpts, HealStartSuccess, HealTaskStatus, StorageInfo

ADMIN_PREFIX = "/minio/admin/v3"


@dataclass
class AdminClient:
    """
    Admin API client with injected httpx client.

    Attributes:
        http: Pre-configured httpx.AsyncClient with base_url set to a
            cluster node and a SigV4 auth signer.

    Example:
        async with create_http_client(base_url="http://minio-1:9000", auth=auth) as http:
            client = AdminClient(http=http)
            info = await client.storage_info()
            for disk in info.disks:
                print(disk.endpoint, disk.state)
    """

    http: httpx.AsyncClient

    async def storage_info(self) -> StorageInfo:
        """
        Get the flat disk listing and backend configuration.

        Calls GET /minio/admin/v3/storageinfo.

        Returns:
            StorageInfo with one DriveRecord per disk in the cluster.

        Raises:
            httpx.HTTPStatusError: On HTTP errors (4xx, 5xx responses).
            pydantic.ValidationError: On malformed response data.
        """
        response = await self.http.get(f"{ADMIN_PREFIX}/storageinfo")
        response.raise_for_status()

        return StorageInfo.model_validate(response.json())

    async def start_heal(
        self,
        opts: HealOpts,
        bucket: str = "",
        prefix: str = "",
    ) -> HealStartSuccess:
        """
        Start a heal sequence.

        Posts the heal options with forceStart so a stale sequence on the
        same scope does not block the new one.

        Args:
            opts: Heal options (scope, scan mode, dry run).
            bucket: Bucket to heal, "" for everything.
            prefix: Object prefix within the bucket.

        Returns:
            HealStartSuccess carrying the client token for status calls.

        Raises:
            httpx.HTTPStatusError: On HTTP errors (4xx, 5xx responses).
            pydantic.ValidationError: On malformed response data.
        """
        response = await self.http.post(
            self._heal_path(bucket, prefix),
            params={"forceStart": "true"},
            json=opts.to_body(),
        )
        response.raise_for_status()

        return HealStartSuccess.model_validate(response.json())

    async def heal_status(
        self,
        opts: HealOpts,
        client_token: str,
        bucket: str = "",
        prefix: str = "",
    ) -> HealTaskStatus:
        """
        Fetch the next incremental status batch of a heal sequence.

        Args:
            opts: The options the sequence was started with.
            client_token: Token returned by start_heal().
            bucket: Bucket the sequence was started on.
            prefix: Prefix the sequence was started on.

        Returns:
            HealTaskStatus with the items scanned since the previous call.

        Raises:
            httpx.HTTPStatusError: On HTTP errors (4xx, 5xx responses).
            pydantic.ValidationError: On malformed response data.
        """
        response = await self.http.post(
            self._heal_path(bucket, prefix),
            params={"clientToken": client_token},
            json=opts.to_body(),
        )
        response.raise_for_status()

        return HealTaskStatus.model_validate(response.json())

    def _heal_path(self, bucket: str, prefix: str) -> str:
        path = f"{ADMIN_PREFIX}/heal/"
        if bucket:
            path += bucket
            if prefix:
                path += f"/{prefix}"
        return path


def load_storage_info_file(path: Path) -> StorageInfo:
    """
    Load a storage info listing from a JSON file.

    The file uses the same schema as the storageinfo response and stands in
    for the live call (offline planning, reproducing a customer topology).

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the file is not valid JSON or not a valid listing
            (json.JSONDecodeError and pydantic.ValidationError are both
            ValueError subclasses).
    """
    raw = Path(path).read_text(encoding="utf-8")
    return StorageInfo.model_validate(json.loads(raw))
