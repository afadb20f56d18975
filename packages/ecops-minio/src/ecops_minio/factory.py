"""
Factory functions for creating MinIO cluster and health poller instances.

This module lets the ecops-core CLI build MinIO-specific objects without
importing ecops_minio at module load time.
"""

import httpx

from ecops_core.config import ClusterConfig
from ecops_core.health import HostHealthPoller, SweepCallback
from ecops_core.transport import create_http_client
from ecops_minio.admin_client import AdminClient
from ecops_minio.auth import AdminSigV4Auth
from ecops_minio.subject import MinIOCluster

MINIO_HEALTH_PATH = "/minio/health/cluster"
MINIO_HEALTH_PARAMS = {"maintenance": "true"}


def create_minio_cluster(
    config: ClusterConfig,
    http: httpx.AsyncClient | None = None,
) -> MinIOCluster:
    """
    Create a MinIOCluster for the configured admin endpoint.

    Args:
        config: Connection settings
        http: Optional pre-configured httpx client for the admin API.
            If None, a SigV4-signing client with bounded timeouts is
            created against config.base_url.

    Returns:
        MinIOCluster ready for use. Call close() when done.

    Example:
        cluster = create_minio_cluster(ClusterConfig(endpoint="minio-1", port=9000))
        try:
            topology = await cluster.get_topology()
        finally:
            await cluster.close()
    """
    if http is None:
        http = create_http_client(
            base_url=config.base_url,
            secure=config.secure,
            timeouts=config.timeouts,
            auth=AdminSigV4Auth(config.access_key, config.secret_key),
        )

    return MinIOCluster(
        admin=AdminClient(http=http),
        storage_info_file=config.storage_info_file,
    )


def create_health_poller(
    hosts: list[str],
    config: ClusterConfig,
    interval: float = 30.0,
    http: httpx.AsyncClient | None = None,
    on_sweep: SweepCallback | None = None,
) -> HostHealthPoller:
    """
    Create a poller for the cluster health endpoint of each host.

    Hosts are probed at http[s]://host[:port]/minio/health/cluster with
    maintenance=true, using the cluster's scheme and port.
    """
    return HostHealthPoller(
        hosts=hosts,
        path=MINIO_HEALTH_PATH,
        port=config.port,
        secure=config.secure,
        params=dict(MINIO_HEALTH_PARAMS),
        interval=interval,
        timeouts=config.timeouts,
        http=http,
        on_sweep=on_sweep,
    )
