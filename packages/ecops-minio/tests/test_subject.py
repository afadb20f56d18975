"""Tests for MinIOCluster and the factory functions."""

import json

import httpx
import pytest
from httpx import Request, Response

from ecops_core.config import ClusterConfig
from ecops_core.exceptions import TopologyError
from ecops_minio.factory import MINIO_HEALTH_PATH, create_health_poller, create_minio_cluster
from ecops_minio.heal import HealOrchestrator, HealUnit


STORAGE_INFO = {
    "Disks": [
        {
            "endpoint": f"http://minio-{n}:9000/data1",
            "path": "/data1",
            "state": "ok",
            "pool_index": 0,
            "set_index": 0,
            "disk_index": n,
        }
        for n in range(1, 5)
    ],
    "Backend": {"StandardSCParity": 2, "RRSCParity": 1},
}


def transport_returning(status_code: int, body) -> httpx.MockTransport:
    def handler(request: Request) -> Response:
        if isinstance(body, bytes):
            return Response(status_code=status_code, content=body, request=request)
        return Response(status_code=status_code, json=body, request=request)

    return httpx.MockTransport(handler)


def cluster_with(transport: httpx.AsyncBaseTransport, **config_kwargs):
    http = httpx.AsyncClient(base_url="http://minio-1:9000", transport=transport)
    return create_minio_cluster(ClusterConfig(**config_kwargs), http=http)


class TestGetTopology:
    """Tests for MinIOCluster.get_topology()."""

    @pytest.mark.asyncio
    async def test_live_listing(self):
        cluster = cluster_with(transport_returning(200, STORAGE_INFO))

        topology = await cluster.get_topology()
        await cluster.close()

        assert topology.total_servers == 4
        assert topology.get_set(0, 0).can_reboot is True

    @pytest.mark.asyncio
    async def test_http_error_is_topology_error(self):
        cluster = cluster_with(transport_returning(403, {"Code": "AccessDenied"}))

        with pytest.raises(TopologyError, match="status 403"):
            await cluster.get_topology()

    @pytest.mark.asyncio
    async def test_connection_error_is_topology_error(self):
        def refuse(request: Request) -> Response:
            raise httpx.ConnectError("connection refused", request=request)

        cluster = cluster_with(httpx.MockTransport(refuse))

        with pytest.raises(TopologyError, match="connection refused"):
            await cluster.get_topology()

    @pytest.mark.asyncio
    async def test_malformed_body_is_topology_error(self):
        cluster = cluster_with(transport_returning(200, b"<html>"))

        with pytest.raises(TopologyError, match="Invalid storage info"):
            await cluster.get_topology()

    @pytest.mark.asyncio
    async def test_storage_info_file_replaces_live_call(self, tmp_path):
        path = tmp_path / "storageinfo.json"
        path.write_text(json.dumps(STORAGE_INFO))

        def unreachable(request: Request) -> Response:
            raise AssertionError("admin API must not be called")

        cluster = cluster_with(httpx.MockTransport(unreachable), storage_info_file=path)
        topology = await cluster.get_topology()

        assert topology.total_servers == 4

    @pytest.mark.asyncio
    async def test_unreadable_storage_info_file(self, tmp_path):
        cluster = cluster_with(
            transport_returning(200, STORAGE_INFO), storage_info_file=tmp_path / "missing.json"
        )

        with pytest.raises(TopologyError, match="Cannot read"):
            await cluster.get_topology()

    @pytest.mark.asyncio
    async def test_invalid_storage_info_file(self, tmp_path):
        path = tmp_path / "storageinfo.json"
        path.write_text(json.dumps({"Disks": [{"state": "ok"}]}))
        cluster = cluster_with(transport_returning(200, STORAGE_INFO), storage_info_file=path)

        with pytest.raises(TopologyError, match="Invalid storage info"):
            await cluster.get_topology()


class TestFactory:
    """Tests for the factory functions."""

    def test_cluster_client_targets_endpoint(self):
        cluster = create_minio_cluster(
            ClusterConfig(endpoint="minio-3", port=9000, secure=True)
        )

        base_url = cluster.admin.http.base_url
        assert (base_url.scheme, base_url.host, base_url.port) == ("https", "minio-3", 9000)
        assert cluster.storage_info_file is None

    def test_heal_orchestrator_uses_admin_client(self):
        cluster = create_minio_cluster(ClusterConfig())
        orchestrator = cluster.heal_orchestrator([HealUnit(0, 0)], interval=0.5)

        assert isinstance(orchestrator, HealOrchestrator)
        assert orchestrator.client is cluster.admin
        assert orchestrator.interval == 0.5

    def test_health_poller_url(self):
        poller = create_health_poller(["minio-1"], ClusterConfig(port=9000), interval=1.0)

        assert poller.url_for("minio-1") == f"http://minio-1:9000{MINIO_HEALTH_PATH}"

    @pytest.mark.asyncio
    async def test_health_poller_sends_maintenance_flag(self):
        seen: list[Request] = []

        def handler(request: Request) -> Response:
            seen.append(request)
            return Response(status_code=200, request=request)

        poller = create_health_poller(
            ["minio-1", "minio-2"],
            ClusterConfig(),
            http=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        report = await poller.run()

        assert report.healthy == ["minio-1", "minio-2"]
        assert all(r.url.params["maintenance"] == "true" for r in seen)
        assert all(r.url.path == "/minio/health/cluster" for r in seen)
