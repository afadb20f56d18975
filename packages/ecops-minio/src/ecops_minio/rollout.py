"""
Safe rolling-reboot planner.

Partitions the servers of a topology into ordered reboot rounds such that
rebooting every server of one round at the same time never takes two
servers of the same erasure set down together, plus a failure list of
servers that must not be rebooted under the current redundancy.

Rules:
- A server hosting any set with can_reboot=False goes to the failure list
  and is never scheduled.
- Two servers sharing at least one erasure set (healthy or not) never
  share a round.
- A server that is alone in every set it hosts never conflicts with anything.
- A host serving several pools is one server: it is placed once, and the
  conflict check of a round spans all pools.

Planning is deterministic: pools are visited in ascending index order and
servers in ascending endpoint order, so identical topologies always yield
identical plans.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from ecops_core.hostfile import reset_directory, write_hostfile
from ecops_minio.topology import Server, Topology

logger = logging.getLogger(__name__)

DEFAULT_MAX_ROUNDS = 200
FAILURE_FILE = "failure"
ROUND_FILE_PREFIX = "round-"


@dataclass
class RolloutPlan:
    """
    Result of rollout planning.

    Attributes:
        rounds: Reboot rounds in execution order. Each round lists server
            endpoints, pools ascending, endpoints sorted within a pool.
        failures: Servers that cannot be rebooted safely, sorted.
        total_servers: Number of servers in the topology.
        scheduled: Number of servers placed into a round.
        horizon_exhausted: True if max_rounds ran out with servers left.
    """

    rounds: list[list[str]] = field(default_factory=list)
    failures: list[str] = field(default_factory=list)
    total_servers: int = 0
    scheduled: int = 0
    horizon_exhausted: bool = False

    @property
    def unplanned(self) -> int:
        """Servers neither scheduled nor in the failure list."""
        return self.total_servers - self.scheduled - len(self.failures)

    @property
    def complete(self) -> bool:
        return self.unplanned == 0


def _conflicts(server: Server, members: list[Server]) -> bool:
    return any(server.shares_set_with(member) for member in members)


def plan_rollout(topology: Topology, max_rounds: int = DEFAULT_MAX_ROUNDS) -> RolloutPlan:
    """
    Plan reboot rounds for every server in the topology.

    Marks each server's processed/rebooted flags as it is placed.

    Args:
        topology: Freshly built topology (flags not yet set).
        max_rounds: Maximum number of rounds to plan.

    Returns:
        RolloutPlan. If the horizon runs out first, horizon_exhausted is set
        and the remaining servers appear in neither rounds nor failures.

    Raises:
        ValueError: If max_rounds is less than 1.
    """
    if max_rounds < 1:
        raise ValueError(f"max_rounds must be at least 1, got {max_rounds}")

    plan = RolloutPlan(total_servers=topology.total_servers)
    pools = topology.sorted_pools()
    done = 0

    for round_index in range(max_rounds):
        if done >= plan.total_servers:
            break

        members: list[Server] = []
        for pool in pools:
            for server in pool.sorted_servers():
                if server.processed:
                    continue

                if not server.can_reboot:
                    server.processed = True
                    plan.failures.append(server.endpoint)
                    done += 1
                    logger.info("Server %s cannot be rebooted safely", server.endpoint)
                    continue

                if _conflicts(server, members):
                    continue

                members.append(server)
                server.processed = True
                server.rebooted = True
                done += 1

        round_endpoints = [s.endpoint for s in members]
        if round_endpoints:
            plan.rounds.append(round_endpoints)
            plan.scheduled += len(round_endpoints)
            logger.debug("Round %d: %s", round_index, ", ".join(round_endpoints))

    plan.failures.sort()
    plan.horizon_exhausted = done < plan.total_servers
    if plan.horizon_exhausted:
        logger.warning(
            "Round horizon of %d exhausted with %d server(s) unplanned",
            max_rounds,
            plan.unplanned,
        )
    return plan


def write_hostfiles(plan: RolloutPlan, folder: Path) -> list[Path]:
    """
    Write a plan as hostfiles.

    The folder is cleared and recreated. It receives a `failure` file
    (always, possibly empty) and one `round-<k>` file per round, k 0-based.

    Args:
        plan: Plan to persist.
        folder: Output directory.

    Returns:
        Paths written, failure file first.

    Raises:
        ArtifactError: If the directory or a file cannot be written.
    """
    folder = Path(folder)
    reset_directory(folder)

    failure_path = folder / FAILURE_FILE
    write_hostfile(failure_path, plan.failures)
    written = [failure_path]

    for index, endpoints in enumerate(plan.rounds):
        if not endpoints:
            continue
        round_path = folder / f"{ROUND_FILE_PREFIX}{index}"
        write_hostfile(round_path, endpoints)
        written.append(round_path)

    return written
