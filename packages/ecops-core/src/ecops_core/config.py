"""
Connection configuration for cluster operations.

This module provides dataclasses that carry the resolved settings for a
single invocation. The CLI fills them from options with environment
variable fallback; library code only ever receives the dataclasses.

Example:
    ```python
    from ecops_core.config import ClusterConfig, SSHConfig

    cluster = ClusterConfig(endpoint="minio-1", port=9000, secure=True)
    cluster.base_url      # "https://minio-1:9000"

    ssh = SSHConfig(port=2222, service_name="minio")
    ```

Credentials are passed through untouched to the request signer. No
authorization decisions are made here.
"""

from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_ENDPOINT = "127.0.0.1"
DEFAULT_ACCESS_KEY = "minioadmin"
DEFAULT_SECRET_KEY = "minioadmin"


@dataclass
class TimeoutConfig:
    """
    Bounded timeouts for outbound HTTP calls.

    Attributes:
        connect: Seconds allowed to establish TCP + TLS (dial and handshake).
        read: Seconds to wait for response data (response header timeout).
        write: Seconds allowed to send the request body.
        pool: Seconds to wait for a free connection from the pool.
        keepalive_expiry: Seconds an idle keep-alive connection is retained.
    """

    connect: float = 5.0
    read: float = 60.0
    write: float = 10.0
    pool: float = 10.0
    keepalive_expiry: float = 60.0


@dataclass
class ClusterConfig:
    """
    Admin API connection settings.

    Attributes:
        endpoint: Hostname or IP of any cluster node serving the admin API.
        port: API port. None means the scheme default.
        access_key: Admin access key (passed through to the signer).
        secret_key: Admin secret key (passed through to the signer).
        secure: Use HTTPS. Certificates are not verified, matching how
            operators typically reach nodes by IP.
        storage_info_file: Optional JSON file that replaces the live
            storage info call (offline planning and tests).
        timeouts: HTTP timeout settings.
    """

    endpoint: str = DEFAULT_ENDPOINT
    port: int | None = None
    access_key: str = DEFAULT_ACCESS_KEY
    secret_key: str = DEFAULT_SECRET_KEY
    secure: bool = False
    storage_info_file: Path | None = None
    timeouts: TimeoutConfig = field(default_factory=TimeoutConfig)

    @property
    def scheme(self) -> str:
        return "https" if self.secure else "http"

    @property
    def base_url(self) -> str:
        """Base URL of the admin endpoint (no trailing slash)."""
        if self.port:
            return f"{self.scheme}://{self.endpoint}:{self.port}"
        return f"{self.scheme}://{self.endpoint}"


@dataclass
class SSHConfig:
    """
    Remote shell settings for maintenance commands.

    Attributes:
        user: Remote login user.
        port: ssh port, or None for the client default.
        connect_timeout: Seconds allowed for the ssh connection handshake.
        command_timeout: Overall seconds allowed for one remote command.
        service_name: systemd unit of the storage service.
        ssh_binary: ssh client executable.
    """

    user: str = "root"
    port: int | None = None
    connect_timeout: int = 10
    command_timeout: float = 120.0
    service_name: str = "minio"
    ssh_binary: str = "ssh"
