"""
MinIOCluster - entry point for topology, rollout and heal operations.

MinIOCluster wraps the admin client and turns the storage info listing
into a Topology. Every failure on that path (unreachable endpoint, bad
credentials, malformed listing, unreadable override file) surfaces as
TopologyError, since no downstream step is safe without a trusted
topology.
"""

from dataclasses import dataclass
from pathlib import Path

import httpx

from ecops_core.exceptions import TopologyError
from ecops_minio.admin_client import AdminClient, load_storage_info_file
from ecops_minio.heal import (
    HEAL_POLL_INTERVAL,
    HealOrchestrator,
    HealUnit,
    ProgressCallback,
    heal_units,
)
from ecops_minio.topology import Topology, build_topology
from ecops_minio.types import StorageInfo


@dataclass
class MinIOCluster:
    """
    One MinIO deployment reached through a single admin endpoint.

    Attributes:
        admin: Admin API client
        storage_info_file: Optional JSON listing used instead of the live
            storageinfo call
    """

    admin: AdminClient
    storage_info_file: Path | None = None

    async def get_storage_info(self) -> StorageInfo:
        """
        Fetch the storage info listing.

        Raises:
            TopologyError: If the listing cannot be obtained or parsed.
        """
        if self.storage_info_file is not None:
            try:
                return load_storage_info_file(self.storage_info_file)
            except OSError as e:
                raise TopologyError(f"Cannot read {self.storage_info_file}: {e}") from e
            except ValueError as e:
                raise TopologyError(f"Invalid storage info in {self.storage_info_file}: {e}") from e

        try:
            return await self.admin.storage_info()
        except httpx.HTTPStatusError as e:
            raise TopologyError(
                f"Storage info request failed with status {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise TopologyError(f"Storage info request failed: {e}") from e
        except ValueError as e:
            raise TopologyError(f"Invalid storage info response: {e}") from e

    async def get_topology(self) -> Topology:
        """
        Build a fresh topology from the current storage info listing.

        Raises:
            TopologyError: If the listing cannot be obtained or a disk
                endpoint cannot be parsed.
        """
        info = await self.get_storage_info()
        return build_topology(info.disks, info.backend)

    def heal_units(self, topology: Topology, endpoint: str | None = None) -> list[HealUnit]:
        return heal_units(topology, endpoint=endpoint)

    def heal_orchestrator(
        self,
        units: list[HealUnit],
        interval: float = HEAL_POLL_INTERVAL,
        on_progress: ProgressCallback | None = None,
    ) -> HealOrchestrator:
        """Create an orchestrator that heals the given units through this cluster."""
        return HealOrchestrator(self.admin, units, interval=interval, on_progress=on_progress)

    async def close(self) -> None:
        await self.admin.http.aclose()
