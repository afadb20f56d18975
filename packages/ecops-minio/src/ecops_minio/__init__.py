"""
MinIO erasure-coded cluster operations.

This package provides the MinIO-specific side of ecops:

- MinIOCluster: topology source and heal entry point
- AdminClient: storage info and heal admin API client (SigV4 signed)
- Topology builder with per-set redundancy derivation
- Rollout planner producing safe reboot rounds
- Heal orchestrator tracking per-set convergence
"""

from ecops_minio.admin_client import AdminClient, load_storage_info_file
from ecops_minio.auth import AdminSigV4Auth
from ecops_minio.heal import (
    HealOrchestrator,
    HealProgress,
    HealReport,
    HealState,
    HealUnit,
    HealUnitStatus,
    SetHealer,
    heal_units,
)
from ecops_minio.rollout import RolloutPlan, plan_rollout, write_hostfiles
from ecops_minio.subject import MinIOCluster
from ecops_minio.topology import (
    Disk,
    ErasureSet,
    Pool,
    Server,
    Topology,
    build_topology,
    parse_hostname,
)
from ecops_minio.types import (
    BackendInfo,
    DriveRecord,
    HealOpts,
    HealScanMode,
    HealStartSuccess,
    HealTaskStatus,
    StorageInfo,
)

__all__ = [
    # Cluster
    "MinIOCluster",
    # Clients
    "AdminClient",
    "AdminSigV4Auth",
    "load_storage_info_file",
    # Topology
    "Disk",
    "ErasureSet",
    "Pool",
    "Server",
    "Topology",
    "build_topology",
    "parse_hostname",
    # Rollout
    "RolloutPlan",
    "plan_rollout",
    "write_hostfiles",
    # Heal
    "HealOrchestrator",
    "HealProgress",
    "HealReport",
    "HealState",
    "HealUnit",
    "HealUnitStatus",
    "SetHealer",
    "heal_units",
    # Admin API types
    "BackendInfo",
    "DriveRecord",
    "HealOpts",
    "HealScanMode",
    "HealStartSuccess",
    "HealTaskStatus",
    "StorageInfo",
]
