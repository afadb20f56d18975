"""Cluster inspection CLI commands.

This module provides read-only commands over the current topology:
- info: Full topology as JSON
- sets: Erasure sets with redundancy state
- disks: Disks with their state

Each invocation rebuilds the topology from the admin API (or from the
storage info replacement file).
"""

import asyncio
import json

import typer
from rich.table import Table

from ecops_core.cli.common import console, fail, fetch_topology, get_config
from ecops_core.exceptions import TopologyError


def _load(ctx: typer.Context):
    try:
        return asyncio.run(fetch_topology(get_config(ctx)))
    except TopologyError as e:
        fail(str(e))


def info(ctx: typer.Context) -> None:
    """Print the cluster topology as JSON."""
    topology = _load(ctx)
    print(json.dumps(topology.to_dict(), indent=2))


def sets(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
    bad_only: bool = typer.Option(False, "--bad-only", help="Show only sets with bad disks"),
) -> None:
    """List erasure sets and whether their servers can be rebooted."""
    topology = _load(ctx)
    erasure_sets = [s for s in topology.sorted_sets() if not bad_only or s.bad_disks > 0]

    if json_output:
        print(json.dumps([s.to_dict() for s in erasure_sets], indent=2))
        return

    table = Table(title="Erasure Sets")
    table.add_column("Set", style="cyan")
    table.add_column("Parity", justify="right")
    table.add_column("Disks", justify="right")
    table.add_column("Bad", justify="right")
    table.add_column("Reboot", justify="center")
    table.add_column("Servers")

    for s in erasure_sets:
        table.add_row(
            s.label,
            str(s.sc_parity),
            str(len(s.disks)),
            f"[red]{s.bad_disks}[/red]" if s.bad_disks else "0",
            "[green]yes[/green]" if s.can_reboot else "[red]no[/red]",
            ", ".join(s.servers()),
        )

    console.print(table)


def disks(
    ctx: typer.Context,
    bad_only: bool = typer.Option(False, "--bad-only", help="Show only disks that are not ok"),
) -> None:
    """List every disk in the cluster."""
    topology = _load(ctx)

    table = Table(title="Disks")
    table.add_column("Set", style="cyan")
    table.add_column("Index", justify="right")
    table.add_column("Server")
    table.add_column("Path")
    table.add_column("State")

    for s in topology.sorted_sets():
        for disk in s.sorted_disks():
            if bad_only and disk.is_ok:
                continue
            table.add_row(
                s.label,
                str(disk.index),
                disk.server,
                disk.path,
                disk.state if disk.is_ok else f"[red]{disk.state}[/red]",
            )

    console.print(table)
