"""
Fatal error classes for cluster operations.

Two failures abort a run outright because everything downstream (most of
all the reboot scheduler's safety guarantee) depends on them:
- TopologyError: the cluster layout could not be obtained or trusted
- ArtifactError: a hostfile or output directory could not be read/written

Per-unit failures (a single heal call, a single probe, a single remote
command) are NOT raised through these types; they are recorded in the
per-unit result values of the component that owns them.
"""

from pathlib import Path


class TopologyError(Exception):
    """
    Raised when the cluster topology cannot be built.

    Attributes:
        endpoint: The disk endpoint that could not be parsed, if any
    """

    def __init__(self, message: str, endpoint: str | None = None) -> None:
        self.endpoint = endpoint
        if endpoint is not None:
            message = f"{message} (endpoint: {endpoint!r})"
        super().__init__(message)


class ArtifactError(Exception):
    """
    Raised when a required file artifact cannot be read or written.

    Attributes:
        path: The file or directory that failed
        reason: Underlying error description
    """

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot access {path}: {reason}")
