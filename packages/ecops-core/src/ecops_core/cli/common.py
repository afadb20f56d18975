"""Shared helpers for CLI commands."""

import asyncio
import signal
from collections.abc import Callable
from typing import TYPE_CHECKING, NoReturn

import typer
from rich.console import Console

from ecops_core.cli.subject_factory import create_cluster
from ecops_core.config import ClusterConfig

if TYPE_CHECKING:
    from ecops_minio.topology import Topology

console = Console()
err_console = Console(stderr=True)


def get_config(ctx: typer.Context) -> ClusterConfig:
    """Cluster settings resolved by the root command."""
    config = ctx.obj
    if not isinstance(config, ClusterConfig):
        config = ClusterConfig()
    return config


async def fetch_topology(config: ClusterConfig) -> "Topology":
    """Build a fresh topology, closing the admin client afterwards."""
    cluster = create_cluster(config)
    try:
        return await cluster.get_topology()
    finally:
        await cluster.close()


def fail(message: str) -> NoReturn:
    """Print a fatal error and exit with status 1."""
    err_console.print(f"[red]Error:[/red] {message}", highlight=False)
    raise typer.Exit(1)


def install_signal_handlers(stop: Callable[[], None]) -> None:
    """Call stop() on SIGINT/SIGTERM. Must run inside the event loop."""
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop)
