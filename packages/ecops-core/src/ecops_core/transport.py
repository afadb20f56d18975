"""
HTTP client construction with bounded timeouts.

Every outbound call that can hit an unreachable host (admin API, health
probes) goes through a client built here, so dial, handshake and idle
limits are always explicit.
"""

import httpx

from ecops_core.config import TimeoutConfig

MAX_CONNECTIONS = 1024


def build_timeout(timeouts: TimeoutConfig | None = None) -> httpx.Timeout:
    """Convert a TimeoutConfig into an httpx.Timeout."""
    timeouts = timeouts or TimeoutConfig()
    return httpx.Timeout(
        connect=timeouts.connect,
        read=timeouts.read,
        write=timeouts.write,
        pool=timeouts.pool,
    )


def create_http_client(
    base_url: str = "",
    secure: bool = False,
    timeouts: TimeoutConfig | None = None,
    auth: httpx.Auth | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """
    Create an httpx.AsyncClient for cluster traffic.

    Args:
        base_url: Base URL for relative request paths ("" for absolute URLs).
        secure: Whether the cluster is reached over TLS. Certificate
            verification is disabled in that case.
        timeouts: Timeout settings (defaults to TimeoutConfig()).
        auth: Optional request signer.
        transport: Optional transport override (tests).

    Returns:
        Configured client. The caller owns it and must close it.
    """
    timeouts = timeouts or TimeoutConfig()
    limits = httpx.Limits(
        max_connections=MAX_CONNECTIONS,
        max_keepalive_connections=MAX_CONNECTIONS,
        keepalive_expiry=timeouts.keepalive_expiry,
    )
    kwargs = {}
    if transport is not None:
        kwargs["transport"] = transport
    return httpx.AsyncClient(
        base_url=base_url,
        timeout=build_timeout(timeouts),
        limits=limits,
        verify=not secure,
        auth=auth,
        **kwargs,
    )
