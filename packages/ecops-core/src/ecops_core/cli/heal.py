"""Heal CLI command.

Starts one heal sequence per erasure set and waits until every set
reports zero invalid objects. Ctrl+C stops polling at the next interval
boundary and prints the last known state.
"""

import asyncio

import typer
from rich.table import Table

from ecops_core.cli.common import console, fail, get_config, install_signal_handlers
from ecops_core.cli.subject_factory import create_cluster
from ecops_core.exceptions import TopologyError


def heal(
    ctx: typer.Context,
    dry_run: bool = typer.Option(
        True, "--dry-run/--no-dry-run", help="Only list the sets that would be healed"
    ),
    local_only: bool = typer.Option(
        False,
        "--local-only",
        help="Only heal sets hosted on the --endpoint server (plus single-server pools)",
    ),
    interval: float = typer.Option(2.0, "--interval", "-i", help="Seconds between status polls"),
) -> None:
    """Heal every erasure set and wait for the cluster to converge."""
    config = get_config(ctx)

    def _print_progress(statuses, total: int) -> None:
        done = sum(1 for s in statuses if s.invalid == 0)
        console.print(
            f"Invalid objects: {total} ({done}/{len(statuses)} sets clean)", highlight=False
        )

    async def _heal():
        cluster = create_cluster(config)
        try:
            topology = await cluster.get_topology()
            units = cluster.heal_units(topology, endpoint=config.endpoint if local_only else None)

            if dry_run:
                return units, None

            orchestrator = cluster.heal_orchestrator(
                units, interval=interval, on_progress=_print_progress
            )
            install_signal_handlers(orchestrator.stop)
            return units, await orchestrator.run()
        finally:
            await cluster.close()

    try:
        units, report = asyncio.run(_heal())
    except TopologyError as e:
        fail(str(e))

    if report is None:
        console.print(f"Dry run: {len(units)} set(s) would be healed")
        for unit in units:
            console.print(f"  {unit.key}", highlight=False)
        return

    table = Table(title="Heal")
    table.add_column("Set", style="cyan")
    table.add_column("State")
    table.add_column("Invalid", justify="right")
    table.add_column("Polls", justify="right")
    table.add_column("Error")
    for status in report.units:
        table.add_row(
            status.unit.key,
            status.state.value,
            str(status.invalid),
            str(status.polls),
            status.error or "",
        )
    console.print(table)

    if not report.converged:
        fail(f"Heal did not converge: {report.total_invalid} invalid object(s) remaining")
    console.print("[green]Heal complete[/green]")
