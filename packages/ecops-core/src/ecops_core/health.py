"""
HostHealthPoller for waiting until a set of nodes report healthy.

This module provides:
- HostStatus: result of one probe against one host
- HealthReport: final (or interrupted) healthy/unhealthy partition
- HostHealthPoller: sweep loop over still-unhealthy hosts

The poller mirrors how a rollout waits for nodes to come back:
- Each sweep probes every host that has not yet answered healthy
- A success status removes the host from further probing
- Anything else (non-success status, timeout, refused connection) keeps
  it in the retry set
- Sweeps repeat with a fixed sleep until every host is healthy

There is no retry bound. The loop ends when all hosts are healthy or when
stop() is called; stop is honored at the next sweep boundary.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

import httpx

from ecops_core.config import TimeoutConfig
from ecops_core.transport import create_http_client

logger = logging.getLogger(__name__)


@dataclass
class HostStatus:
    """
    Result of a single health probe.

    Attributes:
        host: Probed hostname
        healthy: True if the endpoint answered with a success status
        status_code: HTTP status, None if no response was received
        error: Transport error description, None if a response arrived
    """

    host: str
    healthy: bool
    status_code: int | None = None
    error: str | None = None


@dataclass
class HealthReport:
    """
    Healthy/unhealthy partition of the polled hosts.

    Attributes:
        healthy: Hosts that answered healthy at least once
        unhealthy: Hosts that never answered healthy
        sweeps: Number of sweeps performed
    """

    healthy: list[str] = field(default_factory=list)
    unhealthy: list[str] = field(default_factory=list)
    sweeps: int = 0

    @property
    def all_healthy(self) -> bool:
        return not self.unhealthy


SweepCallback = Callable[[int, list[HostStatus]], None]


class HostHealthPoller:
    """
    Polls a health endpoint on every host until all of them are healthy.

    Example:
        poller = HostHealthPoller(
            hosts=["minio-1", "minio-2"],
            port=9000,
            path="/minio/health/cluster",
            params={"maintenance": "true"},
        )
        report = await poller.run()
        print(report.unhealthy)
    """

    def __init__(
        self,
        hosts: list[str],
        path: str,
        port: int | None = None,
        secure: bool = False,
        params: dict[str, str] | None = None,
        interval: float = 30.0,
        timeouts: TimeoutConfig | None = None,
        http: httpx.AsyncClient | None = None,
        on_sweep: SweepCallback | None = None,
    ) -> None:
        """
        Initialize health poller.

        Args:
            hosts: Hostnames to probe (duplicates are collapsed)
            path: Health endpoint path (e.g., "/minio/health/cluster")
            port: Port of the health endpoint, None for the scheme default
            secure: Probe over HTTPS
            params: Query parameters for every probe
            interval: Seconds to sleep between sweeps (default 30)
            timeouts: Timeouts for the internally created client
            http: Optional pre-configured client (tests). When None, a
                client with bounded timeouts is created per run().
            on_sweep: Callback invoked after each sweep with the sweep
                number and the statuses probed in that sweep
        """
        self._healthy: dict[str, bool] = {host: False for host in hosts}
        self._path = path
        self._port = port
        self._secure = secure
        self._params = params or {}
        self._interval = interval
        self._timeouts = timeouts
        self._http = http
        self._on_sweep = on_sweep
        self._shutdown = asyncio.Event()
        self._sweeps = 0

    def url_for(self, host: str) -> str:
        """Build the health URL for a host."""
        scheme = "https" if self._secure else "http"
        netloc = f"{host}:{self._port}" if self._port else host
        return f"{scheme}://{netloc}{self._path}"

    async def probe(self, client: httpx.AsyncClient, host: str) -> HostStatus:
        """
        Probe one host. Never raises for network failures.

        Args:
            client: HTTP client with bounded timeouts
            host: Hostname to probe

        Returns:
            HostStatus for this probe
        """
        try:
            response = await client.get(self.url_for(host), params=self._params)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning("Health probe failed for %s: %s", host, e)
            return HostStatus(host=host, healthy=False, error=str(e) or type(e).__name__)

        if response.status_code != httpx.codes.OK:
            logger.info("Waiting: %s (status %d)", host, response.status_code)
            return HostStatus(host=host, healthy=False, status_code=response.status_code)

        return HostStatus(host=host, healthy=True, status_code=response.status_code)

    async def run(self) -> HealthReport:
        """
        Sweep until every host is healthy or stop() is called.

        Returns:
            HealthReport with the final partition
        """
        if self._http is not None:
            await self._sweep_until_healthy(self._http)
        else:
            async with create_http_client(
                secure=self._secure, timeouts=self._timeouts
            ) as client:
                await self._sweep_until_healthy(client)

        return self.get_report()

    async def _sweep_until_healthy(self, client: httpx.AsyncClient) -> None:
        while not self._shutdown.is_set():
            pending = [host for host, ok in self._healthy.items() if not ok]
            if not pending:
                return

            statuses = await asyncio.gather(*(self.probe(client, h) for h in pending))
            self._sweeps += 1
            for status in statuses:
                if status.healthy:
                    self._healthy[status.host] = True

            unhealthy = sum(1 for s in statuses if not s.healthy)
            if self._on_sweep is not None:
                self._on_sweep(self._sweeps, list(statuses))
            if unhealthy == 0:
                return
            logger.info("Unhealthy hosts count: %d", unhealthy)

            try:
                await asyncio.wait_for(self._shutdown.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                continue

    def get_report(self) -> HealthReport:
        """Current healthy/unhealthy partition (sorted by hostname)."""
        return HealthReport(
            healthy=sorted(h for h, ok in self._healthy.items() if ok),
            unhealthy=sorted(h for h, ok in self._healthy.items() if not ok),
            sweeps=self._sweeps,
        )

    def stop(self) -> None:
        """Signal the poller to stop at the next sweep boundary."""
        self._shutdown.set()
