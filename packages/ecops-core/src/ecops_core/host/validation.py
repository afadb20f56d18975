"""Validation utilities for remote host commands.

Hostnames and service names end up as arguments to the ssh client and to
the remote systemctl. Both are checked before anything is executed so a
malformed hostfile line can never turn into an ssh option or a shell
fragment on the remote side.
"""

import re

# Hostnames, IPv4 and bracket-less IPv6 literals
_HOSTNAME_RE = re.compile(r"^[A-Za-z0-9_.:%-]+$")
_SERVICE_RE = re.compile(r"^[A-Za-z0-9_.@-]+$")

# Services whose restart would cut off the operator itself
FORBIDDEN_SERVICES: set[str] = {
    "systemd",
    "dbus",
    "ssh",
    "sshd",
    "networking",
    "network-manager",
    "systemd-resolved",
    "systemd-networkd",
    "init",
}


def validate_hostname(host: str) -> None:
    """Validate a target host before passing it to ssh.

    Args:
        host: Hostname or IP address

    Raises:
        ValueError: If the host is empty, starts with '-' (would be parsed
            as an ssh option), or contains characters outside hostname/IP
            syntax
    """
    if not host:
        raise ValueError("Invalid host: empty")
    if host.startswith("-"):
        raise ValueError(f"Invalid host '{host}': must not start with '-'")
    if not _HOSTNAME_RE.match(host):
        raise ValueError(f"Invalid host '{host}': contains invalid characters")


def validate_service_name(service_name: str) -> None:
    """Validate a systemd service name.

    Args:
        service_name: Unit name to validate

    Raises:
        ValueError: If the name contains path separators, traversal,
            characters outside unit-name syntax, or names a forbidden service
    """
    if "/" in service_name:
        raise ValueError("Invalid service name: contains path separator '/'")
    if ".." in service_name:
        raise ValueError("Invalid service name: contains path traversal '..'")
    if not _SERVICE_RE.match(service_name):
        raise ValueError(f"Invalid service name '{service_name}': contains invalid characters")
    if service_name in FORBIDDEN_SERVICES:
        raise ValueError(f"Cannot control forbidden service: {service_name}")
