"""Remote host maintenance commands.

Provides RemoteExecutor for running probe/restart/reboot command classes on
cluster nodes over ssh, with hostname and service name validation.
"""

from ecops_core.host.remote import RemoteCommand, RemoteExecutor, RemoteResult
from ecops_core.host.validation import validate_hostname, validate_service_name

__all__ = [
    "RemoteCommand",
    "RemoteExecutor",
    "RemoteResult",
    "validate_hostname",
    "validate_service_name",
]
