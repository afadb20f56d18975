"""
Per-erasure-set heal orchestration.

This module drives one heal sequence per (pool, set) and aggregates their
progress until the whole cluster reports nothing left to repair.

Components:
- HealUnit: one (pool, set) scope, keyed "pool/set"
- HealProgress: latest invalid-object count per unit behind one lock
- SetHealer: monitor for one unit (start, then poll with the token)
- HealOrchestrator: runs every SetHealer concurrently plus an aggregator

Protocol per unit:
1. Start a recursive, normal-scan, non-dry-run heal scoped to the set
2. Every interval, fetch the next status batch with the client token
3. Invalid count = sum of missing/corrupted/offline counts still
   reported after the repair attempt, across the batch's items
4. Converged once the batch says "finished" and the invalid count is 0

Failure model:
- A unit whose heal call raises is marked FAILED and keeps its last known
  invalid count. Siblings keep running; nothing propagates to the caller.
- There is no timeout. A failed unit with a non-zero count keeps the
  aggregate above zero, so the orchestrator runs until stop() is called.

Lock discipline: HealProgress._lock is only held for in-memory reads and
writes of the mapping, never across an admin API call.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from enum import Enum

from ecops_minio.admin_client import AdminClient
from ecops_minio.topology import Topology
from ecops_minio.types import HEAL_STATUS_STOPPED, HealOpts, HealScanMode

logger = logging.getLogger(__name__)

HEAL_POLL_INTERVAL = 2.0


@dataclass(frozen=True, order=True)
class HealUnit:
    """One erasure set scope for healing."""

    pool: int
    set: int

    @property
    def key(self) -> str:
        return f"{self.pool}/{self.set}"


class HealState(str, Enum):
    """Lifecycle of a single unit's monitor."""

    RUNNING = "running"
    CONVERGED = "converged"
    FAILED = "failed"


@dataclass
class HealUnitStatus:
    """
    Latest known progress of one unit.

    Attributes:
        unit: The (pool, set) scope
        invalid: Outstanding invalid objects from the latest status batch
        state: Monitor state
        error: Failure description when state is FAILED
        polls: Number of status batches received
    """

    unit: HealUnit
    invalid: int = 1
    state: HealState = HealState.RUNNING
    error: str | None = None
    polls: int = 0


class HealProgress:
    """
    Shared progress mapping keyed by "pool/set".

    Many monitors write, one aggregator reads. A single coarse lock guards
    the mapping; every critical section is O(1) except snapshot().
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._units: dict[str, HealUnitStatus] = {}

    async def register(self, unit: HealUnit, initial_invalid: int = 1) -> None:
        """Track a unit. Units start non-zero so the aggregate cannot finish early."""
        async with self._lock:
            self._units[unit.key] = HealUnitStatus(unit=unit, invalid=initial_invalid)

    async def ensure(self, unit: HealUnit, initial_invalid: int = 1) -> None:
        """Track a unit unless it is already tracked."""
        async with self._lock:
            if unit.key not in self._units:
                self._units[unit.key] = HealUnitStatus(unit=unit, invalid=initial_invalid)

    async def update(self, unit: HealUnit, invalid: int) -> None:
        async with self._lock:
            status = self._units[unit.key]
            status.invalid = invalid
            status.polls += 1

    async def mark_converged(self, unit: HealUnit) -> None:
        async with self._lock:
            status = self._units[unit.key]
            status.invalid = 0
            status.state = HealState.CONVERGED

    async def mark_failed(self, unit: HealUnit, error: str) -> None:
        """Freeze a unit at its last known count and record why."""
        async with self._lock:
            status = self._units[unit.key]
            status.state = HealState.FAILED
            status.error = error

    async def get(self, unit: HealUnit) -> HealUnitStatus:
        async with self._lock:
            return replace(self._units[unit.key])

    async def snapshot(self) -> list[HealUnitStatus]:
        """Copies of every unit's status, ordered by (pool, set)."""
        async with self._lock:
            statuses = [replace(s) for s in self._units.values()]
        return sorted(statuses, key=lambda s: s.unit)


class SetHealer:
    """
    Monitor for a single erasure set's heal sequence.

    Example:
        healer = SetHealer(client, HealUnit(pool=0, set=3), progress)
        status = await healer.run()   # returns when converged or failed
    """

    def __init__(
        self,
        client: AdminClient,
        unit: HealUnit,
        progress: HealProgress,
        interval: float = HEAL_POLL_INTERVAL,
        shutdown: asyncio.Event | None = None,
    ) -> None:
        self.client = client
        self.unit = unit
        self.progress = progress
        self.interval = interval
        self._shutdown = shutdown or asyncio.Event()

    def heal_opts(self) -> HealOpts:
        return HealOpts(
            recursive=True,
            dry_run=False,
            scan_mode=HealScanMode.NORMAL,
            pool=self.unit.pool,
            set=self.unit.set,
        )

    async def run(self) -> HealUnitStatus:
        """
        Heal the unit until it converges, fails, or shutdown is signalled.

        Never raises for heal failures; they are recorded in the progress
        mapping and in the returned status.
        The unit is added to the progress mapping if it is not tracked yet.
        """
        await self.progress.ensure(self.unit)
        try:
            await self._heal()
        except Exception as e:
            logger.warning("Heal of set %s stopped updating: %s", self.unit.key, e)
            await self.progress.mark_failed(self.unit, str(e) or type(e).__name__)

        return await self.progress.get(self.unit)

    async def _heal(self) -> None:
        opts = self.heal_opts()
        started = await self.client.start_heal(opts)
        logger.info("Heal started for set %s (token %s)", self.unit.key, started.client_token)

        while not await self._wait_interval():
            status = await self.client.heal_status(opts, started.client_token)
            invalid = status.invalid_count()
            await self.progress.update(self.unit, invalid)

            if status.summary == HEAL_STATUS_STOPPED:
                detail = status.failure_detail or "heal sequence stopped"
                logger.warning("Heal of set %s stopped: %s", self.unit.key, detail)
                await self.progress.mark_failed(self.unit, detail)
                return

            if status.finished and invalid == 0:
                await self.progress.mark_converged(self.unit)
                logger.info("Set %s converged", self.unit.key)
                return

    async def _wait_interval(self) -> bool:
        """Sleep one interval. Returns True if shutdown was signalled."""
        try:
            await asyncio.wait_for(self._shutdown.wait(), timeout=self.interval)
        except asyncio.TimeoutError:
            return False
        return True


@dataclass
class HealReport:
    """
    Outcome of an orchestrated heal.

    Attributes:
        converged: True if every registered unit's count reached zero
        units: Final status of every unit, ordered by (pool, set)
        total_invalid: Sum of the final invalid counts
    """

    converged: bool
    units: list[HealUnitStatus] = field(default_factory=list)
    total_invalid: int = 0

    @property
    def failed(self) -> list[HealUnitStatus]:
        return [s for s in self.units if s.state == HealState.FAILED]


ProgressCallback = Callable[[list[HealUnitStatus], int], None]


class HealOrchestrator:
    """
    Heals many erasure sets concurrently and waits for cluster convergence.

    Example:
        units = heal_units(topology)
        orchestrator = HealOrchestrator(client, units)
        loop.add_signal_handler(signal.SIGINT, orchestrator.stop)
        report = await orchestrator.run()
    """

    def __init__(
        self,
        client: AdminClient,
        units: list[HealUnit],
        interval: float = HEAL_POLL_INTERVAL,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        """
        Initialize orchestrator.

        Args:
            client: Admin API client shared by all monitors
            units: Sets to heal
            interval: Seconds between status polls and between aggregations
            on_progress: Called after each aggregation with the unit
                statuses and their summed invalid count
        """
        self.client = client
        self.units = sorted(set(units))
        self.interval = interval
        self.progress = HealProgress()
        self._on_progress = on_progress
        self._shutdown = asyncio.Event()

    async def run(self) -> HealReport:
        """
        Run all monitors and aggregate until convergence or stop().

        Returns:
            HealReport; converged is False if stopped first.
        """
        for unit in self.units:
            await self.progress.register(unit)

        tasks = [
            asyncio.create_task(
                SetHealer(
                    self.client,
                    unit,
                    self.progress,
                    interval=self.interval,
                    shutdown=self._shutdown,
                ).run(),
                name=f"heal-{unit.key}",
            )
            for unit in self.units
        ]

        converged = False
        try:
            while not self._shutdown.is_set():
                try:
                    await asyncio.wait_for(self._shutdown.wait(), timeout=self.interval)
                    break
                except asyncio.TimeoutError:
                    pass

                statuses = await self.progress.snapshot()
                total = sum(s.invalid for s in statuses)
                self._report(statuses, total)
                if total == 0:
                    converged = True
                    break
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        statuses = await self.progress.snapshot()
        return HealReport(
            converged=converged,
            units=statuses,
            total_invalid=sum(s.invalid for s in statuses),
        )

    def stop(self) -> None:
        """Stop aggregating and polling at the next poll boundary."""
        self._shutdown.set()

    def _report(self, statuses: list[HealUnitStatus], total: int) -> None:
        if self._on_progress is not None:
            self._on_progress(statuses, total)
            return
        for status in statuses:
            logger.info("Set: %s Invalid: %d", status.unit.key, status.invalid)


def heal_units(topology: Topology, endpoint: str | None = None) -> list[HealUnit]:
    """
    List the heal scopes of a topology.

    Args:
        topology: Cluster topology
        endpoint: If given, only sets hosted on this server, plus every set
            of pools that consist of a single server

    Returns:
        Units ordered by (pool, set)
    """
    units: set[HealUnit] = set()
    for pool in topology.sorted_pools():
        for server in pool.sorted_servers():
            if endpoint is None or server.endpoint == endpoint:
                units.update(HealUnit(pool=s.pool, set=s.id) for s in server.sets.values())
            elif len(pool.servers) == 1:
                units.update(
                    HealUnit(pool=s.pool, set=s.id)
                    for s in server.sets.values()
                    if s.pool == pool.index
                )
    return sorted(units)
