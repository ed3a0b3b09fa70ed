"""
Tests for the asyncio SubprocessRunner.

Runs real child processes through the test interpreter, so every test is
portable across POSIX hosts without extra tooling.
"""

import asyncio
import os
import shlex
import sys
import time

import pytest

from conduit.shared.domain.exceptions import LaunchError
from conduit.shared.infrastructure.execution.process_runner import SubprocessRunner

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="process groups are POSIX-only")


class TestSubprocessRunner:
    """Exit codes, output capture, environment and working directory."""

    @pytest.mark.asyncio
    async def test_successful_command_captures_stdout(self, python_cmd):
        runner = SubprocessRunner()
        result = await runner.run_async(python_cmd("print('hello')"), env=dict(os.environ))

        assert result.exit_code == 0
        assert result.is_success
        assert result.stdout == "hello\n"
        assert result.stderr == ""
        assert not result.timed_out
        assert not result.truncated

    @pytest.mark.asyncio
    async def test_non_zero_exit_and_stderr_are_reported(self, python_cmd):
        runner = SubprocessRunner()
        code = "import sys; sys.stderr.write('boom'); sys.exit(3)"
        result = await runner.run_async(python_cmd(code), env=dict(os.environ))

        assert result.exit_code == 3
        assert not result.is_success
        assert result.stderr == "boom"

    @pytest.mark.asyncio
    async def test_env_is_the_complete_child_environment(self, python_cmd, monkeypatch):
        monkeypatch.setenv("NOT_PASSED", "leak")
        runner = SubprocessRunner()
        code = "import os; print(os.environ.get('STAGE_VAR'), os.environ.get('NOT_PASSED'))"
        result = await runner.run_async(python_cmd(code), env={"STAGE_VAR": "value"})

        assert result.stdout.strip() == "value None"

    @pytest.mark.asyncio
    async def test_working_directory(self, python_cmd, tmp_path):
        runner = SubprocessRunner()
        result = await runner.run_async(python_cmd("import os; print(os.getcwd())"), cwd=tmp_path)

        assert os.path.realpath(result.stdout.strip()) == os.path.realpath(str(tmp_path))

    @pytest.mark.asyncio
    async def test_shell_command(self):
        runner = SubprocessRunner()
        result = await runner.run_async("echo $GREETING world", env={"GREETING": "hello", "PATH": os.defpath}, shell=True)

        assert result.exit_code == 0
        assert result.stdout == "hello world\n"

    @pytest.mark.asyncio
    async def test_string_command_without_shell_is_split(self):
        runner = SubprocessRunner()
        command = f"{shlex.quote(sys.executable)} -c 'print(42)'"
        result = await runner.run_async(command)

        assert result.stdout == "42\n"
        assert result.command == command


class TestLaunchErrors:
    """Processes that cannot start raise LaunchError."""

    @pytest.mark.asyncio
    async def test_missing_executable(self):
        runner = SubprocessRunner()
        with pytest.raises(LaunchError, match="Cannot start"):
            await runner.run_async(["definitely-not-a-real-binary-xyz"])

    @pytest.mark.asyncio
    async def test_missing_working_directory(self, python_cmd, tmp_path):
        runner = SubprocessRunner()
        with pytest.raises(LaunchError):
            await runner.run_async(python_cmd("pass"), cwd=tmp_path / "missing")

    @pytest.mark.asyncio
    async def test_permission_denied(self, tmp_path):
        script = tmp_path / "script.sh"
        script.write_text("#!/bin/sh\necho hi\n")
        script.chmod(0o644)
        runner = SubprocessRunner()
        with pytest.raises(LaunchError):
            await runner.run_async([str(script)])

    @pytest.mark.asyncio
    async def test_empty_command(self):
        runner = SubprocessRunner()
        with pytest.raises(LaunchError, match="Empty command"):
            await runner.run_async([])


class TestTimeoutAndTruncation:
    """Cancellation by timeout and bounded output capture."""

    @pytest.mark.asyncio
    async def test_timeout_terminates_process(self, python_cmd):
        runner = SubprocessRunner(kill_grace_period=1.0)
        code = "import time, sys; print('started', flush=True); time.sleep(10)"

        start = time.perf_counter()
        result = await runner.run_async(python_cmd(code), timeout=1.0)
        elapsed = time.perf_counter() - start

        assert result.timed_out
        assert result.exit_code is None
        assert not result.is_success
        assert result.stdout == "started\n"
        assert elapsed < 5.0

    @pytest.mark.asyncio
    async def test_timeout_kills_process_ignoring_sigterm(self, python_cmd):
        runner = SubprocessRunner(kill_grace_period=0.5)
        code = (
            "import signal, time\n"
            "signal.signal(signal.SIGTERM, signal.SIG_IGN)\n"
            "time.sleep(10)\n"
        )

        start = time.perf_counter()
        result = await runner.run_async(python_cmd(code), timeout=0.5)

        assert result.timed_out
        assert time.perf_counter() - start < 5.0

    @pytest.mark.asyncio
    async def test_default_timeout_is_used(self, python_cmd):
        runner = SubprocessRunner(default_timeout=0.5, kill_grace_period=0.5)
        result = await runner.run_async(python_cmd("import time; time.sleep(10)"))

        assert result.timed_out

    @pytest.mark.asyncio
    async def test_output_over_limit_is_truncated_and_flagged(self, python_cmd):
        runner = SubprocessRunner(output_limit=100)
        result = await runner.run_async(python_cmd("print('x' * 5000)"))

        assert result.exit_code == 0
        assert result.truncated
        assert result.stdout == "x" * 100

    @pytest.mark.asyncio
    async def test_output_at_limit_is_not_flagged(self, python_cmd):
        runner = SubprocessRunner(output_limit=6)
        result = await runner.run_async(python_cmd("print('12345')"))

        assert result.stdout == "12345\n"
        assert not result.truncated


def _is_running(pid: int) -> bool:
    """True while ``pid`` exists and is not a zombie."""
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    if not os.path.isdir("/proc"):
        return True
    try:
        with open(f"/proc/{pid}/stat") as stat:
            return stat.read().rsplit(")", 1)[1].split()[0] != "Z"
    except FileNotFoundError:
        return False


class TestInvalidArguments:
    """Arguments the OS refuses are launch errors, not crashes."""

    @pytest.mark.asyncio
    async def test_unbalanced_quote_without_shell(self):
        runner = SubprocessRunner()
        with pytest.raises(LaunchError, match="Cannot parse"):
            await runner.run_async("echo 'unbalanced", shell=False)

    @pytest.mark.asyncio
    async def test_nul_byte_in_argument(self):
        runner = SubprocessRunner()
        with pytest.raises(LaunchError, match="Cannot start"):
            await runner.run_async(["echo", "a\x00b"])

    @pytest.mark.asyncio
    async def test_nul_byte_in_environment(self, python_cmd):
        runner = SubprocessRunner()
        with pytest.raises(LaunchError, match="Cannot start"):
            await runner.run_async(python_cmd("pass"), env={"X": "a\x00b"})


class TestProcessGroupCleanup:
    """Timeouts stop every process in the group, not just the leader."""

    @pytest.mark.asyncio
    async def test_background_child_killed_after_leader_exits(self):
        runner = SubprocessRunner(kill_grace_period=1.0)
        child = f"{shlex.quote(sys.executable)} -c 'import time; time.sleep(30)'"
        command = f"{child} & echo $!"

        start = time.perf_counter()
        result = await runner.run_async(command, env=dict(os.environ), timeout=1.0, shell=True)

        assert result.timed_out
        assert result.exit_code is None
        assert time.perf_counter() - start < 5.0

        pid = int(result.stdout.strip())
        for _ in range(40):
            if not _is_running(pid):
                break
            await asyncio.sleep(0.05)
        assert not _is_running(pid)
