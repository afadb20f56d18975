"""Remote maintenance command executor.

Runs one of three command classes on a cluster node through the system ssh
client:
- PROBE: no-op connectivity check (`date`), used for dry runs
- RESTART_SERVICE: restart the storage service unit
- REBOOT: stop the storage service, then reboot the host

All commands use asyncio.create_subprocess_exec with an argument vector;
the local side never goes through a shell. The ssh connection is bounded
by ConnectTimeout/ServerAliveInterval and the whole command by an overall
timeout, so an unreachable host cannot hang a rollout.

Failed commands are reported, never retried.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from ecops_core.config import SSHConfig
from ecops_core.host.validation import validate_hostname, validate_service_name

logger = logging.getLogger(__name__)


class RemoteCommand(str, Enum):
    """Command classes the executor can run on a host."""

    PROBE = "probe"
    RESTART_SERVICE = "restart-service"
    REBOOT = "reboot"


@dataclass
class RemoteResult:
    """Outcome of one command class on one host.

    Attributes:
        host: Target host
        command: Command class that was run
        success: True if every step exited 0
        returncode: Exit code of the last step that ran (None if none ran)
        output: Combined stdout/stderr of the last step that ran
        error: Failure description, None on success
        timeout: True if a step exceeded the overall command timeout
    """

    host: str
    command: RemoteCommand
    success: bool
    returncode: int | None = None
    output: str = ""
    error: str | None = None
    timeout: bool = False


class RemoteExecutor:
    """Executor for maintenance commands over ssh.

    Example:
        executor = RemoteExecutor(SSHConfig(port=22), dry_run=False)
        result = await executor.run("minio-3", RemoteCommand.RESTART_SERVICE)
        if not result.success:
            print(result.error)
    """

    def __init__(self, ssh: SSHConfig | None = None, dry_run: bool = False):
        """Initialize executor.

        Args:
            ssh: Remote shell settings (defaults to SSHConfig())
            dry_run: If True, every command is replaced by PROBE

        Raises:
            ValueError: If the configured service name is invalid
        """
        self.ssh = ssh or SSHConfig()
        self.dry_run = dry_run
        validate_service_name(self.ssh.service_name)

    def steps_for(self, command: RemoteCommand) -> list[list[str]]:
        """Return the remote argument vectors for a command class, in order."""
        service = self.ssh.service_name
        if self.dry_run or command == RemoteCommand.PROBE:
            return [["date"]]
        if command == RemoteCommand.RESTART_SERVICE:
            return [["sudo", "systemctl", "restart", service]]
        return [
            ["sudo", "systemctl", "stop", service],
            ["sudo", "reboot"],
        ]

    def build_ssh_args(self, host: str, remote_argv: list[str]) -> list[str]:
        """Build the local ssh argument vector for one remote step."""
        args = [
            self.ssh.ssh_binary,
            "-o", "BatchMode=yes",
            "-o", "StrictHostKeyChecking=no",
            "-o", f"ConnectTimeout={self.ssh.connect_timeout}",
            "-o", "ServerAliveInterval=5",
            "-o", "ServerAliveCountMax=3",
            "-l", self.ssh.user,
        ]
        if self.ssh.port:
            args += ["-p", str(self.ssh.port)]
        args += ["--", host, *remote_argv]
        return args

    async def run(self, host: str, command: RemoteCommand) -> RemoteResult:
        """Run a command class on a host.

        Steps run in order and stop at the first failure.

        Args:
            host: Target hostname or IP
            command: Command class to run

        Returns:
            RemoteResult describing the outcome

        Raises:
            ValueError: If the hostname is invalid
        """
        validate_hostname(host)
        effective = RemoteCommand.PROBE if self.dry_run else command
        logger.info("Running %s on %s (dry_run=%s)", effective.value, host, self.dry_run)

        returncode: int | None = None
        output = ""
        for remote_argv in self.steps_for(command):
            step = " ".join(remote_argv)
            try:
                returncode, output = await asyncio.wait_for(
                    self._exec(self.build_ssh_args(host, remote_argv)),
                    timeout=self.ssh.command_timeout,
                )
            except asyncio.TimeoutError:
                logger.warning("Command '%s' timed out on %s", step, host)
                return RemoteResult(
                    host=host,
                    command=effective,
                    success=False,
                    error=f"'{step}' timed out after {self.ssh.command_timeout}s",
                    timeout=True,
                )
            except OSError as e:
                logger.warning("Could not start ssh for %s: %s", host, e)
                return RemoteResult(
                    host=host,
                    command=effective,
                    success=False,
                    error=f"could not run ssh: {e}",
                )

            if returncode != 0:
                logger.warning("Command '%s' failed on %s (exit %s)", step, host, returncode)
                return RemoteResult(
                    host=host,
                    command=effective,
                    success=False,
                    returncode=returncode,
                    output=output,
                    error=f"'{step}' exited with {returncode}",
                )

        return RemoteResult(
            host=host,
            command=effective,
            success=True,
            returncode=returncode,
            output=output,
        )

    async def run_many(
        self,
        hosts: list[str],
        command: RemoteCommand,
        on_result: Callable[[RemoteResult], None] | None = None,
    ) -> list[RemoteResult]:
        """Run a command class on hosts one after another.

        A failing host is reported and skipped; the remaining hosts still run.

        Args:
            hosts: Target hosts in execution order
            command: Command class to run on each host
            on_result: Optional callback invoked after each host finishes

        Returns:
            One RemoteResult per host, in input order
        """
        results: list[RemoteResult] = []
        for host in hosts:
            try:
                result = await self.run(host, command)
            except ValueError as e:
                logger.warning("Skipping host %r: %s", host, e)
                result = RemoteResult(host=host, command=command, success=False, error=str(e))
            results.append(result)
            if on_result is not None:
                on_result(result)
        return results

    async def _exec(self, args: list[str]) -> tuple[int, str]:
        """Run a local process and return (returncode, combined output)."""
        proc = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
        try:
            stdout, _ = await proc.communicate()
        except asyncio.CancelledError:
            proc.kill()
            await proc.wait()
            raise
        return proc.returncode, stdout.decode("utf-8", errors="replace").strip()
