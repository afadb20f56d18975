"""
MinIO admin API Pydantic types.

This module provides Pydantic models for the admin API calls the operator
depends on:
- Storage info: flat disk listing plus backend parity configuration
- Heal: start options, start acknowledgement, incremental status batches

These are API types for external data validation. The internal cluster
model (Pool, Server, ErasureSet, Disk) lives in ecops_minio.topology as
dataclasses.

Notes:
- Field names follow the server's JSON exactly via aliases; the storage
  info envelope uses Go-style capitalised keys ("Disks", "Backend") while
  disk records use snake_case ("pool_index") and heal items use camelCase
  ("resultId")
- Pool, set and disk indices are 0-based as reported by the server
- Unknown fields are ignored; the server adds fields between releases
"""

from enum import IntEnum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

DRIVE_STATE_OK = "ok"
DRIVE_STATE_OFFLINE = "offline"
DRIVE_STATE_CORRUPT = "corrupt"
DRIVE_STATE_MISSING = "missing"

HEAL_STATUS_NOT_STARTED = "not started"
HEAL_STATUS_RUNNING = "running"
HEAL_STATUS_STOPPED = "stopped"
HEAL_STATUS_FINISHED = "finished"


class _AdminModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# =============================================================================
# Storage info: GET /minio/admin/v3/storageinfo
# =============================================================================


class DriveRecord(_AdminModel):
    """
    One disk entry from the storage info listing.

    Example:
        {
            "endpoint": "http://minio-1:9000/data1",
            "path": "/data1",
            "state": "ok",
            "uuid": "7c3e...",
            "pool_index": 0,
            "set_index": 1,
            "disk_index": 3
        }
    """

    endpoint: str
    drive_path: str = Field(default="", alias="path")
    state: str = ""
    uuid: str = ""
    pool_index: int = 0
    set_index: int = 0
    disk_index: int = 0
    healing: bool = False
    total_space: int = Field(default=0, alias="totalspace")
    used_space: int = Field(default=0, alias="usedspace")


class BackendInfo(_AdminModel):
    """
    Erasure backend configuration.

    Only the parity counts are used for redundancy decisions; the rest is
    carried for the JSON info output.
    """

    backend_type: int = Field(default=0, alias="Type")
    standard_sc_parity: int = Field(default=0, alias="StandardSCParity")
    rr_sc_parity: int = Field(default=0, alias="RRSCParity")
    standard_sc_data: list[int] = Field(default_factory=list, alias="StandardSCData")
    rr_sc_data: list[int] = Field(default_factory=list, alias="RRSCData")
    total_sets: list[int] = Field(default_factory=list, alias="TotalSets")
    drives_per_set: list[int] = Field(default_factory=list, alias="DrivesPerSet")


class StorageInfo(_AdminModel):
    """
    Response from GET /minio/admin/v3/storageinfo.

    Example response:
    {
        "Disks": [{"endpoint": "http://minio-1:9000/data1", "state": "ok", ...}],
        "Backend": {"Type": 2, "StandardSCParity": 2, "RRSCParity": 1}
    }
    """

    disks: list[DriveRecord] = Field(default_factory=list, alias="Disks")
    backend: BackendInfo = Field(default_factory=BackendInfo, alias="Backend")


# =============================================================================
# Heal: POST /minio/admin/v3/heal/
# =============================================================================


class HealScanMode(IntEnum):
    """Heal scan depth."""

    UNKNOWN = 0
    NORMAL = 1
    DEEP = 2


class HealOpts(_AdminModel):
    """
    Heal request body.

    `pool` and `set` restrict the heal sequence to one erasure set.
    """

    recursive: bool = False
    dry_run: bool = Field(default=False, alias="dryRun")
    remove: bool = False
    recreate: bool = False
    scan_mode: HealScanMode = Field(default=HealScanMode.NORMAL, alias="scanMode")
    update_parity: bool = Field(default=False, alias="updateParity")
    no_lock: bool = Field(default=False, alias="nolock")
    pool: int | None = None
    set: int | None = None

    def to_body(self) -> dict:
        """Serialise for the request body using the server's field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class HealStartSuccess(_AdminModel):
    """
    Response to a heal start request.

    The client token identifies the heal sequence in later status calls.
    """

    client_token: str = Field(alias="clientToken")
    client_address: str = Field(default="", alias="clientAddress")
    start_time: str = Field(default="", alias="startTime")


class HealDriveInfo(_AdminModel):
    """State of one drive for one healed item."""

    uuid: str = ""
    endpoint: str = ""
    state: str = ""


class HealDriveSnapshot(_AdminModel):
    """Drive states of an item, before or after the repair attempt."""

    drives: list[HealDriveInfo] = Field(default_factory=list)

    def count_state(self, state: str) -> int:
        return sum(1 for d in self.drives if d.state == state)


class HealResultItem(_AdminModel):
    """
    One scanned item (bucket, object or metadata) in a heal status batch.

    The before/after snapshots carry a per-drive state; the count helpers
    return (before, after) pairs.
    """

    result_id: int = Field(default=0, alias="resultId")
    type: str = ""
    bucket: str = ""
    object: str = ""
    detail: str = ""
    parity_blocks: int = Field(default=0, alias="parityBlocks")
    data_blocks: int = Field(default=0, alias="dataBlocks")
    disk_count: int = Field(default=0, alias="diskCount")
    before: HealDriveSnapshot = Field(default_factory=HealDriveSnapshot)
    after: HealDriveSnapshot = Field(default_factory=HealDriveSnapshot)

    def get_missing_counts(self) -> tuple[int, int]:
        return (
            self.before.count_state(DRIVE_STATE_MISSING),
            self.after.count_state(DRIVE_STATE_MISSING),
        )

    def get_corrupted_counts(self) -> tuple[int, int]:
        return (
            self.before.count_state(DRIVE_STATE_CORRUPT),
            self.after.count_state(DRIVE_STATE_CORRUPT),
        )

    def get_offline_counts(self) -> tuple[int, int]:
        return (
            self.before.count_state(DRIVE_STATE_OFFLINE),
            self.after.count_state(DRIVE_STATE_OFFLINE),
        )

    def outstanding_after(self) -> int:
        """Missing + corrupted + offline drives still reported after repair."""
        return (
            self.get_missing_counts()[1]
            + self.get_corrupted_counts()[1]
            + self.get_offline_counts()[1]
        )


class HealTaskStatus(_AdminModel):
    """
    Incremental heal status batch.

    Items are drained on every status call: each batch only carries the
    items scanned since the previous call.
    """

    summary: str = Field(default="", alias="Summary")
    failure_detail: str = Field(
        default="",
        validation_alias=AliasChoices("Detail", "FailureDetail", "failure_detail"),
        serialization_alias="Detail",
    )
    start_time: str = Field(default="", alias="StartTime")
    items: list[HealResultItem] | None = Field(default=None, alias="Items")

    @property
    def finished(self) -> bool:
        return self.summary == HEAL_STATUS_FINISHED

    def invalid_count(self) -> int:
        """Sum of outstanding missing/corrupted/offline counts in this batch."""
        return sum(item.outstanding_after() for item in self.items or [])
