"""Tests for RemoteExecutor ssh commands and validation."""

import asyncio
import pytest
from unittest.mock import AsyncMock, patch

from ecops_core.config import SSHConfig
from ecops_core.host.remote import RemoteCommand, RemoteExecutor, RemoteResult
from ecops_core.host.validation import validate_hostname, validate_service_name


def _proc(returncode: int = 0, output: bytes = b"") -> AsyncMock:
    proc = AsyncMock()
    proc.returncode = returncode
    proc.communicate = AsyncMock(return_value=(output, None))
    return proc


# ===== Validation Tests =====


class TestValidateHostname:
    """Tests for hostname validation."""

    def test_accepts_hostnames_and_addresses(self):
        """Hostnames, IPv4 and IPv6 literals should be accepted."""
        validate_hostname("minio-1")
        validate_hostname("minio-1.dc1.example.com")
        validate_hostname("10.0.0.12")
        validate_hostname("fe80::1%eth0")

    def test_rejects_empty_host(self):
        with pytest.raises(ValueError, match="empty"):
            validate_hostname("")

    def test_rejects_option_injection(self):
        """A leading dash would be parsed as an ssh option."""
        with pytest.raises(ValueError, match="must not start with '-'"):
            validate_hostname("-oProxyCommand=evil")

    def test_rejects_whitespace_and_shell_characters(self):
        for host in ("minio 1", "minio;reboot", "minio$(id)", "minio\n"):
            with pytest.raises(ValueError, match="invalid characters"):
                validate_hostname(host)


class TestValidateServiceName:
    """Tests for service name validation."""

    def test_accepts_unit_names(self):
        validate_service_name("minio")
        validate_service_name("minio@data1.service")

    def test_rejects_path_separator(self):
        with pytest.raises(ValueError, match="path separator"):
            validate_service_name("../minio")

    def test_rejects_forbidden_services(self):
        """Services that would cut off the operator are never controlled."""
        for name in ("sshd", "systemd", "networking"):
            with pytest.raises(ValueError, match="forbidden service"):
                validate_service_name(name)

    def test_executor_validates_service_on_init(self):
        with pytest.raises(ValueError):
            RemoteExecutor(SSHConfig(service_name="sshd"))


# ===== Command Construction Tests =====


class TestCommandSteps:
    """Tests for command class to remote argv mapping."""

    def test_probe_runs_date(self):
        executor = RemoteExecutor()
        assert executor.steps_for(RemoteCommand.PROBE) == [["date"]]

    def test_restart_service(self):
        executor = RemoteExecutor(SSHConfig(service_name="minio"))
        assert executor.steps_for(RemoteCommand.RESTART_SERVICE) == [
            ["sudo", "systemctl", "restart", "minio"]
        ]

    def test_reboot_stops_service_first(self):
        executor = RemoteExecutor()
        assert executor.steps_for(RemoteCommand.REBOOT) == [
            ["sudo", "systemctl", "stop", "minio"],
            ["sudo", "reboot"],
        ]

    def test_dry_run_always_probes(self):
        """Dry run replaces every command with the connectivity probe."""
        executor = RemoteExecutor(dry_run=True)
        assert executor.steps_for(RemoteCommand.REBOOT) == [["date"]]
        assert executor.steps_for(RemoteCommand.RESTART_SERVICE) == [["date"]]

    def test_ssh_args(self):
        executor = RemoteExecutor(SSHConfig(user="ops", port=2222, connect_timeout=10))
        args = executor.build_ssh_args("minio-1", ["date"])

        assert args[0] == "ssh"
        assert "BatchMode=yes" in args
        assert "ConnectTimeout=10" in args
        assert args[args.index("-l") + 1] == "ops"
        assert args[args.index("-p") + 1] == "2222"
        # Host comes after the option terminator, followed by the remote argv
        assert args[-3:] == ["--", "minio-1", "date"]

    def test_ssh_args_without_port(self):
        executor = RemoteExecutor()
        args = executor.build_ssh_args("minio-1", ["date"])
        assert "-p" not in args
        assert args[args.index("-l") + 1] == "root"


# ===== Execution Tests =====


class TestRun:
    """Tests for RemoteExecutor.run()."""

    @pytest.mark.asyncio
    async def test_restart_success(self):
        """Successful restart should report success with the exit code."""
        executor = RemoteExecutor()

        with patch("ecops_core.host.remote.asyncio.create_subprocess_exec") as mock_exec:
            mock_exec.return_value = _proc(0, b"")

            result = await executor.run("minio-1", RemoteCommand.RESTART_SERVICE)

        assert result.success is True
        assert result.returncode == 0
        assert result.command == RemoteCommand.RESTART_SERVICE
        args = mock_exec.call_args[0]
        assert list(args[-5:]) == ["minio-1", "sudo", "systemctl", "restart", "minio"]

    @pytest.mark.asyncio
    async def test_reboot_runs_both_steps(self):
        executor = RemoteExecutor()

        with patch("ecops_core.host.remote.asyncio.create_subprocess_exec") as mock_exec:
            mock_exec.side_effect = [_proc(0), _proc(0)]

            result = await executor.run("minio-1", RemoteCommand.REBOOT)

        assert result.success is True
        assert mock_exec.call_count == 2
        assert list(mock_exec.call_args_list[0][0][-4:]) == ["sudo", "systemctl", "stop", "minio"]
        assert list(mock_exec.call_args_list[1][0][-2:]) == ["sudo", "reboot"]

    @pytest.mark.asyncio
    async def test_failed_step_stops_command(self):
        """A failing stop must not be followed by the reboot."""
        executor = RemoteExecutor()

        with patch("ecops_core.host.remote.asyncio.create_subprocess_exec") as mock_exec:
            mock_exec.side_effect = [_proc(1, b"Failed to stop minio.service\n")]

            result = await executor.run("minio-1", RemoteCommand.REBOOT)

        assert result.success is False
        assert result.returncode == 1
        assert "exited with 1" in result.error
        assert result.output == "Failed to stop minio.service"
        assert mock_exec.call_count == 1

    @pytest.mark.asyncio
    async def test_dry_run_reports_probe(self):
        executor = RemoteExecutor(dry_run=True)

        with patch("ecops_core.host.remote.asyncio.create_subprocess_exec") as mock_exec:
            mock_exec.return_value = _proc(0, b"Sat Oct 17 10:00:00 UTC 2026\n")

            result = await executor.run("minio-1", RemoteCommand.REBOOT)

        assert result.success is True
        assert result.command == RemoteCommand.PROBE
        assert mock_exec.call_args[0][-1] == "date"

    @pytest.mark.asyncio
    async def test_timeout(self):
        """A hanging command is reported as a timeout, not raised."""
        executor = RemoteExecutor(SSHConfig(command_timeout=0.05))

        async def hang(args):
            await asyncio.sleep(10)

        with patch.object(executor, "_exec", side_effect=hang):
            result = await executor.run("minio-1", RemoteCommand.RESTART_SERVICE)

        assert result.success is False
        assert result.timeout is True
        assert "timed out" in result.error

    @pytest.mark.asyncio
    async def test_missing_ssh_binary(self):
        executor = RemoteExecutor(SSHConfig(ssh_binary="/nonexistent/ssh"))

        with patch("ecops_core.host.remote.asyncio.create_subprocess_exec") as mock_exec:
            mock_exec.side_effect = FileNotFoundError("No such file or directory")

            result = await executor.run("minio-1", RemoteCommand.PROBE)

        assert result.success is False
        assert "could not run ssh" in result.error

    @pytest.mark.asyncio
    async def test_invalid_host_raises(self):
        executor = RemoteExecutor()
        with pytest.raises(ValueError):
            await executor.run("-oProxyCommand=x", RemoteCommand.PROBE)


class TestRunMany:
    """Tests for sequential multi-host execution."""

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_remaining_hosts(self):
        executor = RemoteExecutor()
        seen: list[RemoteResult] = []

        with patch("ecops_core.host.remote.asyncio.create_subprocess_exec") as mock_exec:
            mock_exec.side_effect = [_proc(255), _proc(0)]

            results = await executor.run_many(
                ["minio-1", "minio-2"],
                RemoteCommand.RESTART_SERVICE,
                on_result=seen.append,
            )

        assert [r.host for r in results] == ["minio-1", "minio-2"]
        assert [r.success for r in results] == [False, True]
        assert seen == results

    @pytest.mark.asyncio
    async def test_invalid_host_is_reported(self):
        """An invalid hostfile line becomes a failed result."""
        executor = RemoteExecutor()

        with patch("ecops_core.host.remote.asyncio.create_subprocess_exec") as mock_exec:
            mock_exec.return_value = _proc(0)

            results = await executor.run_many(["bad host", "minio-2"], RemoteCommand.PROBE)

        assert results[0].success is False
        assert "invalid characters" in results[0].error
        assert results[1].success is True
        assert mock_exec.call_count == 1
