"""ecops CLI - maintenance operator for erasure-coded MinIO clusters."""

from pathlib import Path

import typer

from ecops_core.cli import cluster, heal, rollout
from ecops_core.config import DEFAULT_ACCESS_KEY, DEFAULT_ENDPOINT, DEFAULT_SECRET_KEY, ClusterConfig
from ecops_core.log import configure_logging

app = typer.Typer(
    name="ecops",
    help="Maintenance operator for erasure-coded MinIO clusters",
    no_args_is_help=True,
)


@app.callback()
def root(
    ctx: typer.Context,
    endpoint: str = typer.Option(
        DEFAULT_ENDPOINT, "--endpoint", envvar="ECOPS_ENDPOINT", help="Server endpoint"
    ),
    port: int | None = typer.Option(None, "--port", envvar="ECOPS_PORT", help="API port"),
    access_key: str = typer.Option(
        DEFAULT_ACCESS_KEY, "--key", envvar="ECOPS_ACCESS_KEY", help="Admin user/key"
    ),
    secret_key: str = typer.Option(
        DEFAULT_SECRET_KEY, "--secret", envvar="ECOPS_SECRET_KEY", help="Admin password/secret"
    ),
    secure: bool = typer.Option(False, "--secure", envvar="ECOPS_SECURE", help="Use TLS"),
    storage_info_file: Path | None = typer.Option(
        None,
        "--storage-info-file",
        envvar="ECOPS_STORAGE_INFO_FILE",
        help="Read storage info from this JSON file instead of the admin API",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """
    Connection options shared by every command.

    Environment variables:
        ECOPS_ENDPOINT, ECOPS_PORT: Admin API address
        ECOPS_ACCESS_KEY, ECOPS_SECRET_KEY: Admin credentials
        ECOPS_SECURE: Use TLS
        ECOPS_STORAGE_INFO_FILE: Offline storage info listing
    """
    configure_logging(verbose=verbose)
    ctx.obj = ClusterConfig(
        endpoint=endpoint,
        port=port,
        access_key=access_key,
        secret_key=secret_key,
        secure=secure,
        storage_info_file=storage_info_file,
    )


# Cluster inspection
app.command("info")(cluster.info)
app.command("sets")(cluster.sets)
app.command("disks")(cluster.disks)

# Rolling maintenance
app.command("hostfile")(rollout.hostfile)
app.command("reboot")(rollout.reboot)
app.command("health")(rollout.health)

# Healing
app.command("heal")(heal.heal)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
