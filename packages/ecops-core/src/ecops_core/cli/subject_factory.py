"""
Factory for creating cluster and health poller instances.

Uses lazy imports so the core CLI does not load ecops_minio until a
command actually needs it.
"""

from typing import TYPE_CHECKING

from ecops_core.config import ClusterConfig
from ecops_core.health import HostHealthPoller, SweepCallback

if TYPE_CHECKING:
    from ecops_minio.subject import MinIOCluster


def create_cluster(config: ClusterConfig) -> "MinIOCluster":
    """Create a MinIOCluster for the configured admin endpoint."""
    # Lazy import to avoid loading the minio package for unrelated commands
    from ecops_minio.factory import create_minio_cluster

    return create_minio_cluster(config)


def create_poller(
    hosts: list[str],
    config: ClusterConfig,
    interval: float,
    on_sweep: SweepCallback | None = None,
) -> HostHealthPoller:
    """Create a health poller for the cluster health endpoint of each host."""
    from ecops_minio.factory import create_health_poller

    return create_health_poller(hosts, config, interval=interval, on_sweep=on_sweep)
