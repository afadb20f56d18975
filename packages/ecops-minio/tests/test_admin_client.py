"""
Tests for the admin API client.

These tests verify the AdminClient correctly:
- Fetches and parses the storage info listing
- Starts heal sequences and polls them with the client token
- Signs every request with SigV4
- Raises on HTTP errors (fail loudly)
"""

import hashlib
import json

import httpx
import pytest
from httpx import Request, Response

from ecops_minio.admin_client import AdminClient, load_storage_info_file
from ecops_minio.auth import AdminSigV4Auth
from ecops_minio.types import HealOpts, HealScanMode

EMPTY_SHA256 = hashlib.sha256(b"").hexdigest()


class MockTransport(httpx.AsyncBaseTransport):
    """Mock transport for testing HTTP responses."""

    def __init__(self, responses: dict[str, dict]):
        """
        Initialize with mapping of paths to response data.

        Args:
            responses: Dict mapping URL paths to response data.
                       Each value should have 'status_code' and 'json' keys.
        """
        self._responses = responses
        self.requests: list[Request] = []

    async def handle_async_request(self, request: Request) -> Response:
        """Record the request and return the mocked response."""
        await request.aread()
        self.requests.append(request)
        path = request.url.path
        if path in self._responses:
            resp_data = self._responses[path]
            return Response(
                status_code=resp_data.get("status_code", 200),
                json=resp_data.get("json", {}),
                request=request,
            )
        return Response(status_code=404, request=request)


@pytest.fixture
def storage_info_response():
    """Sample response for /minio/admin/v3/storageinfo."""
    return {
        "Disks": [
            {
                "endpoint": "http://minio-1:9000/data1",
                "rootDisk": False,
                "path": "/data1",
                "healing": False,
                "state": "ok",
                "uuid": "6e4c8b5a-1",
                "totalspace": 1000,
                "usedspace": 100,
                "pool_index": 0,
                "set_index": 0,
                "disk_index": 0,
            },
            {
                "endpoint": "http://minio-2:9000/data1",
                "path": "/data1",
                "state": "offline",
                "uuid": "",
                "pool_index": 0,
                "set_index": 0,
                "disk_index": 1,
            },
        ],
        "Backend": {
            "Type": 2,
            "StandardSCParity": 2,
            "RRSCParity": 1,
            "StandardSCData": [2],
            "TotalSets": [1],
            "DrivesPerSet": [4],
        },
    }


@pytest.fixture
def heal_status_response():
    """Sample incremental heal status batch."""
    return {
        "Summary": "running",
        "StartTime": "2026-10-18T09:00:00Z",
        "Items": [
            {
                "resultId": 1,
                "type": "bucket",
                "bucket": "photos",
                "before": {"drives": [{"uuid": "a", "state": "missing"}, {"uuid": "b", "state": "ok"}]},
                "after": {"drives": [{"uuid": "a", "state": "ok"}, {"uuid": "b", "state": "ok"}]},
            },
            {
                "resultId": 2,
                "type": "object",
                "bucket": "photos",
                "object": "cat.jpg",
                "before": {"drives": [{"state": "corrupt"}, {"state": "offline"}]},
                "after": {"drives": [{"state": "corrupt"}, {"state": "offline"}]},
            },
        ],
    }


def make_client(transport: MockTransport, auth: httpx.Auth | None = None) -> AdminClient:
    return AdminClient(
        http=httpx.AsyncClient(
            base_url="http://minio-1:9000",
            transport=transport,
            auth=auth or AdminSigV4Auth("minioadmin", "minioadmin"),
        )
    )


# =============================================================================
# Storage info
# =============================================================================


class TestStorageInfo:
    """Tests for AdminClient.storage_info()."""

    @pytest.mark.asyncio
    async def test_parses_disks_and_backend(self, storage_info_response):
        transport = MockTransport(
            {"/minio/admin/v3/storageinfo": {"json": storage_info_response}}
        )
        info = await make_client(transport).storage_info()

        assert len(info.disks) == 2
        assert info.disks[0].endpoint == "http://minio-1:9000/data1"
        assert info.disks[0].drive_path == "/data1"
        assert info.disks[0].total_space == 1000
        assert info.disks[1].state == "offline"
        assert info.disks[1].disk_index == 1
        assert info.backend.standard_sc_parity == 2
        assert info.backend.rr_sc_parity == 1
        assert info.backend.drives_per_set == [4]

    @pytest.mark.asyncio
    async def test_request_is_signed(self, storage_info_response):
        transport = MockTransport(
            {"/minio/admin/v3/storageinfo": {"json": storage_info_response}}
        )
        await make_client(transport).storage_info()

        request = transport.requests[0]
        assert request.method == "GET"
        authorization = request.headers["Authorization"]
        assert authorization.startswith("AWS4-HMAC-SHA256 Credential=minioadmin/")
        assert "/us-east-1/s3/aws4_request" in authorization
        assert "Signature=" in authorization
        assert request.headers["X-Amz-Content-Sha256"] == EMPTY_SHA256
        assert "X-Amz-Date" in request.headers

    @pytest.mark.asyncio
    async def test_http_error_raises(self):
        transport = MockTransport(
            {"/minio/admin/v3/storageinfo": {"status_code": 403, "json": {"Code": "AccessDenied"}}}
        )
        with pytest.raises(httpx.HTTPStatusError):
            await make_client(transport).storage_info()


# =============================================================================
# Heal
# =============================================================================


class TestHeal:
    """Tests for the heal start and status calls."""

    @pytest.mark.asyncio
    async def test_start_heal(self):
        transport = MockTransport(
            {
                "/minio/admin/v3/heal/": {
                    "json": {
                        "clientToken": "abc-123",
                        "clientAddress": "10.0.0.1",
                        "startTime": "2026-10-18T09:00:00Z",
                    }
                }
            }
        )
        opts = HealOpts(recursive=True, scan_mode=HealScanMode.NORMAL, pool=0, set=2)

        started = await make_client(transport).start_heal(opts)

        assert started.client_token == "abc-123"
        request = transport.requests[0]
        assert request.method == "POST"
        assert request.url.params["forceStart"] == "true"
        body = json.loads(request.content)
        assert body["recursive"] is True
        assert body["scanMode"] == 1
        assert body["pool"] == 0
        assert body["set"] == 2
        assert request.headers["X-Amz-Content-Sha256"] == hashlib.sha256(request.content).hexdigest()

    @pytest.mark.asyncio
    async def test_heal_status(self, heal_status_response):
        transport = MockTransport({"/minio/admin/v3/heal/": {"json": heal_status_response}})
        opts = HealOpts(recursive=True, pool=0, set=2)

        result = await make_client(transport).heal_status(opts, "abc-123")

        assert transport.requests[0].url.params["clientToken"] == "abc-123"
        assert "forceStart" not in transport.requests[0].url.params
        assert result.summary == "running"
        assert result.finished is False
        assert result.items[0].get_missing_counts() == (1, 0)
        assert result.items[1].get_corrupted_counts() == (1, 1)
        assert result.items[1].get_offline_counts() == (1, 1)
        assert result.invalid_count() == 2

    @pytest.mark.asyncio
    async def test_heal_status_without_items(self):
        transport = MockTransport(
            {"/minio/admin/v3/heal/": {"json": {"Summary": "finished", "Items": None}}}
        )
        result = await make_client(transport).heal_status(HealOpts(), "abc-123")

        assert result.finished is True
        assert result.invalid_count() == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("key", ["Detail", "FailureDetail"])
    async def test_heal_status_stop_detail(self, key):
        transport = MockTransport(
            {"/minio/admin/v3/heal/": {"json": {"Summary": "stopped", key: "drive removed"}}}
        )
        result = await make_client(transport).heal_status(HealOpts(), "abc-123")

        assert result.summary == "stopped"
        assert result.failure_detail == "drive removed"

    @pytest.mark.asyncio
    async def test_bucket_scope_path(self):
        transport = MockTransport(
            {"/minio/admin/v3/heal/photos/2026": {"json": {"clientToken": "t"}}}
        )
        await make_client(transport).start_heal(HealOpts(), bucket="photos", prefix="2026")

        assert transport.requests[0].url.path == "/minio/admin/v3/heal/photos/2026"

    @pytest.mark.asyncio
    async def test_heal_error_raises(self):
        transport = MockTransport({"/minio/admin/v3/heal/": {"status_code": 500}})
        with pytest.raises(httpx.HTTPStatusError):
            await make_client(transport).start_heal(HealOpts())


# =============================================================================
# Storage info file
# =============================================================================


class TestStorageInfoFile:
    """Tests for the storage info replacement file."""

    def test_load(self, tmp_path, storage_info_response):
        path = tmp_path / "storageinfo.json"
        path.write_text(json.dumps(storage_info_response))

        info = load_storage_info_file(path)

        assert len(info.disks) == 2
        assert info.backend.standard_sc_parity == 2

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "storageinfo.json"
        path.write_text("{not json")

        with pytest.raises(ValueError):
            load_storage_info_file(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            load_storage_info_file(tmp_path / "missing.json")
