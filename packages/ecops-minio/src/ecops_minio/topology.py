"""
Cluster topology model and builder.

This module turns the flat disk listing from the admin API into a
Pool -> Server -> ErasureSet -> Disk hierarchy and derives per-set
redundancy health.

A logical erasure set spans several servers. It is modelled as ONE
ErasureSet object keyed by (pool, set) and referenced from every Server
that hosts one of its disks, so the aggregate fields (bad disk count,
can_reboot) exist exactly once and every server view agrees on them.

A server is a host. A host may carry drives in several pools; it is still
ONE Server object, listed under every pool it serves, whose sets are the
union across those pools.

Redundancy rule:
    set.can_reboot  <=>  set.bad_disks < set.sc_parity - 1
    server.can_reboot  <=>  every set the server hosts can reboot

The threshold keeps one unit of parity in reserve for the reboot itself.
It is applied exactly as written; do not relax it to `< parity`.

The topology is rebuilt from scratch on every invocation and never
persisted.
"""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlsplit

from ecops_core.exceptions import TopologyError
from ecops_minio.types import DRIVE_STATE_OK, BackendInfo, DriveRecord

logger = logging.getLogger(__name__)

SetKey = tuple[int, int]
"""(pool index, set index) identity of an erasure set."""


@dataclass
class Disk:
    """
    A single drive as reported by the admin API.

    Attributes:
        uuid: Drive UUID.
        index: Position of the drive within its erasure set.
        pool: Owning pool index.
        set: Owning erasure set index.
        server: Hostname of the server holding the drive.
        endpoint: Full endpoint URL (e.g., "http://minio-1:9000/data1").
        path: Filesystem path on the server.
        state: "ok", or any other string meaning degraded/offline.
    """

    uuid: str
    index: int
    pool: int
    set: int
    server: str
    endpoint: str
    path: str
    state: str

    @property
    def is_ok(self) -> bool:
        return self.state == DRIVE_STATE_OK

    def to_dict(self) -> dict[str, Any]:
        return {
            "uuid": self.uuid,
            "index": self.index,
            "pool": self.pool,
            "set": self.set,
            "server": self.server,
            "endpoint": self.endpoint,
            "path": self.path,
            "state": self.state,
        }


@dataclass(eq=False)
class ErasureSet:
    """
    A logical erasure set, shared by every server that hosts its disks.

    Attributes:
        pool: Pool index.
        id: Set index within the pool.
        sc_parity: Standard storage class parity.
        rrsc_parity: Reduced redundancy storage class parity.
        disks: All disks of the set across all servers, keyed by endpoint.
        bad_disks: Number of disks whose state is not "ok".
        can_reboot: True if one more disk may go offline for maintenance.
    """

    pool: int
    id: int
    sc_parity: int
    rrsc_parity: int
    disks: dict[str, Disk] = field(default_factory=dict)
    bad_disks: int = 0
    can_reboot: bool = False

    @property
    def key(self) -> SetKey:
        return (self.pool, self.id)

    @property
    def label(self) -> str:
        """Display/progress key, "pool/set"."""
        return f"{self.pool}/{self.id}"

    def servers(self) -> list[str]:
        """Hostnames hosting at least one disk of this set, sorted."""
        return sorted({disk.server for disk in self.disks.values()})

    def sorted_disks(self) -> list[Disk]:
        return sorted(self.disks.values(), key=lambda d: (d.index, d.endpoint))

    def apply_redundancy(self, bad_disks: int) -> None:
        """Record the global bad disk count and derive can_reboot."""
        self.bad_disks = bad_disks
        self.can_reboot = bad_disks < self.sc_parity - 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "pool": self.pool,
            "id": self.id,
            "sc_parity": self.sc_parity,
            "rrsc_parity": self.rrsc_parity,
            "bad_disks": self.bad_disks,
            "can_reboot": self.can_reboot,
            "servers": self.servers(),
            "disks": [d.to_dict() for d in self.sorted_disks()],
        }


@dataclass(eq=False)
class Server:
    """
    One storage host, shared by every pool it carries drives for.

    Attributes:
        endpoint: Hostname identifying the server.
        sets: Erasure sets with at least one disk on this server, keyed by
            (pool, set) across all pools. The values are the shared
            ErasureSet objects.
        processed: Set by the rollout planner once the server is placed.
        rebooted: Set by the rollout planner when the server is scheduled
            into a reboot round (False for servers in the failure list).
    """

    endpoint: str
    sets: dict[SetKey, ErasureSet] = field(default_factory=dict)
    processed: bool = False
    rebooted: bool = False

    @property
    def pools(self) -> list[int]:
        """Indices of the pools this server carries drives for."""
        return sorted({pool for pool, _ in self.sets})

    @property
    def can_reboot(self) -> bool:
        return all(s.can_reboot for s in self.sets.values())

    def set_keys(self) -> set[SetKey]:
        return set(self.sets)

    def shares_set_with(self, other: "Server") -> bool:
        """True if both servers host disks of at least one common set."""
        return not self.set_keys().isdisjoint(other.set_keys())

    def disks(self) -> list[Disk]:
        """Disks physically on this server, ordered by pool, set, index."""
        return [
            disk
            for key in sorted(self.sets)
            for disk in self.sets[key].sorted_disks()
            if disk.server == self.endpoint
        ]

    def to_dict(self) -> dict[str, Any]:
        return {
            "endpoint": self.endpoint,
            "pools": self.pools,
            "can_reboot": self.can_reboot,
            "sets": [self.sets[key].label for key in sorted(self.sets)],
            "disks": [d.to_dict() for d in self.disks()],
        }


@dataclass
class Pool:
    """
    A top-level grouping of servers. Purely a namespace.

    The Server values are the shared per-host objects, so a host serving
    several pools appears under each of them as the same object.
    """

    index: int
    servers: dict[str, Server] = field(default_factory=dict)

    def sorted_servers(self) -> list[Server]:
        return [self.servers[name] for name in sorted(self.servers)]


@dataclass
class Topology:
    """
    Complete cluster layout for one invocation.

    Attributes:
        pools: Pools keyed by pool index.
        sets: Every logical erasure set keyed by (pool, set).
        hosts: Every server keyed by hostname, one object per host.
        backend: Backend configuration the parity values came from.
    """

    pools: dict[int, Pool] = field(default_factory=dict)
    sets: dict[SetKey, ErasureSet] = field(default_factory=dict)
    hosts: dict[str, Server] = field(default_factory=dict)
    backend: BackendInfo = field(default_factory=BackendInfo)

    @property
    def total_servers(self) -> int:
        return len(self.hosts)

    def sorted_pools(self) -> list[Pool]:
        return [self.pools[index] for index in sorted(self.pools)]

    def servers(self) -> Iterator[Server]:
        """
        Every host once, in pool order then by endpoint.

        A host serving several pools is yielded at its lowest pool.
        """
        seen: set[str] = set()
        for pool in self.sorted_pools():
            for server in pool.sorted_servers():
                if server.endpoint not in seen:
                    seen.add(server.endpoint)
                    yield server

    def sorted_sets(self) -> list[ErasureSet]:
        return [self.sets[key] for key in sorted(self.sets)]

    def get_set(self, pool: int, set_id: int) -> ErasureSet | None:
        return self.sets.get((pool, set_id))

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_servers": self.total_servers,
            "sc_parity": self.backend.standard_sc_parity,
            "rrsc_parity": self.backend.rr_sc_parity,
            "pools": {
                str(pool.index): {
                    "servers": {s.endpoint: s.to_dict() for s in pool.sorted_servers()},
                }
                for pool in self.sorted_pools()
            },
            "sets": [s.to_dict() for s in self.sorted_sets()],
        }


def parse_hostname(endpoint: str) -> str:
    """
    Derive the server identity from a disk endpoint URL.

    Raises:
        TopologyError: If the endpoint cannot be parsed or has no host.
    """
    try:
        hostname = urlsplit(endpoint).hostname
    except ValueError as e:
        raise TopologyError(f"Unparsable disk endpoint: {e}", endpoint=endpoint) from e

    if not hostname:
        raise TopologyError("Disk endpoint has no host", endpoint=endpoint)
    return hostname


def build_topology(disks: Iterable[DriveRecord], backend: BackendInfo) -> Topology:
    """
    Build the cluster hierarchy from a flat disk listing.

    Two passes:
    1. Place every disk into its Pool/Server/ErasureSet and count non-"ok"
       disks per (pool, set) in a side index.
    2. Apply the global count to each logical set, which is what every
       server view references.

    Args:
        disks: Disk records from the storage info listing.
        backend: Backend configuration supplying the parity counts.

    Returns:
        Fully derived Topology.

    Raises:
        TopologyError: On any unparsable endpoint. The whole topology is
            rejected; a partial one cannot be trusted for scheduling.
    """
    topology = Topology(backend=backend)
    bad_counts: dict[SetKey, int] = {}

    for record in disks:
        hostname = parse_hostname(record.endpoint)
        key = (record.pool_index, record.set_index)

        pool = topology.pools.get(record.pool_index)
        if pool is None:
            pool = topology.pools[record.pool_index] = Pool(index=record.pool_index)

        server = topology.hosts.get(hostname)
        if server is None:
            server = topology.hosts[hostname] = Server(endpoint=hostname)
        pool.servers[hostname] = server

        erasure_set = topology.sets.get(key)
        if erasure_set is None:
            erasure_set = topology.sets[key] = ErasureSet(
                pool=record.pool_index,
                id=record.set_index,
                sc_parity=backend.standard_sc_parity,
                rrsc_parity=backend.rr_sc_parity,
            )
        server.sets[key] = erasure_set

        bad_counts.setdefault(key, 0)
        if record.state != DRIVE_STATE_OK:
            bad_counts[key] += 1

        # Missing drive path falls back to the endpoint's path component
        path = record.drive_path or urlsplit(record.endpoint).path

        erasure_set.disks[record.endpoint] = Disk(
            uuid=record.uuid,
            index=record.disk_index,
            pool=record.pool_index,
            set=record.set_index,
            server=hostname,
            endpoint=record.endpoint,
            path=path,
            state=record.state,
        )

    for key, erasure_set in topology.sets.items():
        erasure_set.apply_redundancy(bad_counts.get(key, 0))

    logger.debug(
        "Built topology: %d pool(s), %d server(s), %d set(s)",
        len(topology.pools),
        topology.total_servers,
        len(topology.sets),
    )
    return topology
