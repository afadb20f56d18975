"""Rolling maintenance CLI commands.

This module provides the commands of a rolling reboot:
- hostfile: Plan reboot rounds and write them as hostfiles
- reboot: Restart the service (or reboot) every host of one hostfile
- health: Wait until every host of one hostfile reports healthy

A rollout runs them in turn per round:
    ecops hostfile --folder ./cluster-hostfiles
    ecops reboot --hostfile ./cluster-hostfiles/round-0 --no-dry-run
    ecops health --hostfile ./cluster-hostfiles/round-0
"""

import asyncio
from pathlib import Path

import typer

from ecops_core.cli.common import console, fail, fetch_topology, get_config, install_signal_handlers
from ecops_core.cli.subject_factory import create_poller
from ecops_core.config import SSHConfig
from ecops_core.exceptions import ArtifactError, TopologyError
from ecops_core.health import HostStatus
from ecops_core.host import RemoteCommand, RemoteExecutor, RemoteResult
from ecops_core.hostfile import read_hostfile

DEFAULT_FOLDER = Path("./cluster-hostfiles")


def hostfile(
    ctx: typer.Context,
    folder: Path = typer.Option(
        DEFAULT_FOLDER, "--folder", "-f", help="Hostfiles will be placed in this folder"
    ),
    max_rounds: int = typer.Option(200, "--max-rounds", min=1, help="Maximum reboot rounds to plan"),
) -> None:
    """
    Plan safe reboot rounds and write them as hostfiles.

    The folder is recreated and receives `failure` (servers that cannot be
    rebooted safely) and one `round-<k>` file per round.
    """
    from ecops_minio.rollout import plan_rollout, write_hostfiles

    try:
        topology = asyncio.run(fetch_topology(get_config(ctx)))
        plan = plan_rollout(topology, max_rounds=max_rounds)
        written = write_hostfiles(plan, folder)
    except (TopologyError, ArtifactError) as e:
        fail(str(e))

    for path in written:
        console.print(f"Wrote {path}", highlight=False)
    for endpoint in plan.failures:
        console.print(f"[yellow]Cannot reboot safely:[/yellow] {endpoint}", highlight=False)
    console.print(
        f"Total ({plan.total_servers}) Online ({plan.scheduled})",
        highlight=False,
    )

    if plan.horizon_exhausted:
        fail(f"{plan.unplanned} server(s) could not be placed within {max_rounds} rounds")


def reboot(
    hostfile: Path = typer.Option(..., "--hostfile", help="The list of hosts to be rebooted"),
    dry_run: bool = typer.Option(
        True, "--dry-run/--no-dry-run", help="Only check ssh connectivity"
    ),
    service_only: bool = typer.Option(
        True,
        "--service-only/--full-reboot",
        help="Only restart the storage service, not the server itself",
    ),
    ssh_user: str = typer.Option("root", "--ssh-user", envvar="ECOPS_SSH_USER", help="Remote user"),
    ssh_port: int | None = typer.Option(None, "--ssh-port", envvar="ECOPS_SSH_PORT", help="ssh port"),
    service: str = typer.Option("minio", "--service", help="systemd unit of the storage service"),
) -> None:
    """Restart the storage service (or reboot) on every host of a hostfile."""
    try:
        hosts = read_hostfile(hostfile)
        executor = RemoteExecutor(
            SSHConfig(user=ssh_user, port=ssh_port, service_name=service),
            dry_run=dry_run,
        )
    except (ArtifactError, ValueError) as e:
        fail(str(e))

    command = RemoteCommand.RESTART_SERVICE if service_only else RemoteCommand.REBOOT
    if dry_run:
        console.print(f"Dry run: probing {len(hosts)} host(s) instead of {command.value}")

    def _print(result: RemoteResult) -> None:
        if result.success:
            console.print(f"[green]OK[/green]   {result.host} ({result.command.value})", highlight=False)
        else:
            console.print(f"[red]FAIL[/red] {result.host}: {result.error}", highlight=False)

    results = asyncio.run(executor.run_many(hosts, command, on_result=_print))

    failed = [r for r in results if not r.success]
    if failed:
        fail(f"{len(failed)} of {len(results)} host(s) failed")


def health(
    ctx: typer.Context,
    hostfile: Path = typer.Option(
        ..., "--hostfile", help="The list of hosts to be monitored for health"
    ),
    interval: float = typer.Option(30.0, "--interval", "-i", help="Seconds between sweeps"),
) -> None:
    """Wait until every host of a hostfile reports cluster health."""
    try:
        hosts = read_hostfile(hostfile)
    except ArtifactError as e:
        fail(str(e))

    def _print(sweep: int, statuses: list[HostStatus]) -> None:
        unhealthy = sum(1 for s in statuses if not s.healthy)
        console.print(f"Sweep {sweep}: unhealthy hosts count: {unhealthy}", highlight=False)

    poller = create_poller(hosts, get_config(ctx), interval=interval, on_sweep=_print)

    async def _run():
        install_signal_handlers(poller.stop)
        return await poller.run()

    report = asyncio.run(_run())

    if not report.all_healthy:
        fail(f"Unhealthy hosts: {', '.join(report.unhealthy)}")
    console.print(f"[green]All {len(report.healthy)} host(s) healthy[/green]")
