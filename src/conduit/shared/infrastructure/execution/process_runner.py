"""
Process Runner.

Executes a single external command asynchronously with an explicit
environment and working directory. Handles timeouts, bounded output
capture, and process-group cleanup.
"""

import asyncio
import contextlib
import os
import shlex
import signal
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Protocol, Sequence, Union

from conduit.shared.domain.exceptions import LaunchError
from conduit.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

CommandSpec = Union[str, Sequence[str]]

_READ_CHUNK = 64 * 1024


@dataclass
class ProcessResult:
    """Result of a single process execution."""
    command: str
    exit_code: Optional[int]
    stdout: str
    stderr: str
    duration: float
    timed_out: bool = False
    truncated: bool = False

    @property
    def is_success(self) -> bool:
        """Check if the process exited cleanly within its time budget."""
        return self.exit_code == 0 and not self.timed_out


class ProcessRunner(Protocol):
    """Capability to run one external process; substituted with fakes in tests."""

    async def run_async(
        self,
        command: CommandSpec,
        cwd: Optional[Union[str, Path]] = None,
        env: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
        shell: bool = False,
    ) -> ProcessResult:
        ...


class _OutputBuffer:
    """Byte buffer that stops growing at ``limit`` and remembers it did."""

    def __init__(self, limit: int):
        self.limit = limit
        self.data = bytearray()
        self.truncated = False

    def feed(self, chunk: bytes) -> None:
        room = max(self.limit - len(self.data), 0)
        if room:
            self.data.extend(chunk[:room])
        if len(chunk) > room:
            self.truncated = True

    def text(self) -> str:
        return self.data.decode("utf-8", errors="replace")


class SubprocessRunner:
    """
    asyncio-backed ProcessRunner.

    The given ``env`` is the complete child environment; callers merge
    whatever base environment they want before calling.
    """

    def __init__(
        self,
        default_timeout: float = 900.0,
        output_limit: int = 1_048_576,
        kill_grace_period: float = 5.0,
    ):
        self.default_timeout = default_timeout
        self.output_limit = output_limit
        self.kill_grace_period = kill_grace_period

    async def run_async(
        self,
        command: CommandSpec,
        cwd: Optional[Union[str, Path]] = None,
        env: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
        shell: bool = False,
    ) -> ProcessResult:
        """
        Execute a command and wait for it, at most ``timeout`` seconds.

        Args:
            command: Command string or list of arguments
            cwd: Working directory
            env: Full environment for the child process
            timeout: Execution timeout in seconds
            shell: Run through the system shell

        Returns:
            ProcessResult; ``timed_out`` is set and ``exit_code`` is None
            when the process had to be terminated.

        Raises:
            LaunchError: If the process could not be started
        """
        start_time = time.perf_counter()
        timeout_val = timeout if timeout is not None else self.default_timeout

        if isinstance(command, str):
            cmd_str = command
            try:
                cmd_args = [command] if shell else shlex.split(command)
            except ValueError as e:
                raise LaunchError(f"Cannot parse {cmd_str!r}: {e}", {"command": cmd_str}) from e
        else:
            cmd_args = list(command)
            cmd_str = shlex.join(cmd_args)

        if not cmd_args or not cmd_args[0].strip():
            raise LaunchError("Empty command", {"command": cmd_str})

        logger.debug("executing_command", command=cmd_str, cwd=str(cwd) if cwd else None, timeout=timeout_val)

        try:
            if shell:
                process = await asyncio.create_subprocess_shell(
                    cmd_str,
                    stdin=asyncio.subprocess.DEVNULL,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                    cwd=cwd,
                    env=dict(env) if env is not None else None,
                    start_new_session=True,  # own process group for cleanup
                )
            else:
                process = await asyncio.create_subprocess_exec(
                    *cmd_args,
                    stdin=asyncio.subprocess.DEVNULL,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                    cwd=cwd,
                    env=dict(env) if env is not None else None,
                    start_new_session=True,
                )
        except OSError as e:
            logger.warning("command_launch_failed", command=cmd_str, error=e.strerror or str(e))
            raise LaunchError(
                f"Cannot start {cmd_str!r}: {e.strerror or e}",
                {"command": cmd_str, "errno": e.errno},
            ) from e
        except ValueError as e:
            # NUL bytes in argv or environment
            logger.warning("command_launch_failed", command=cmd_str, error=str(e))
            raise LaunchError(f"Cannot start {cmd_str!r}: {e}", {"command": cmd_str}) from e

        stdout_buf = _OutputBuffer(self.output_limit)
        stderr_buf = _OutputBuffer(self.output_limit)
        collector = asyncio.ensure_future(self._collect(process, stdout_buf, stderr_buf))

        try:
            await asyncio.wait_for(collector, timeout=timeout_val)
        except asyncio.TimeoutError:
            logger.warning("command_timeout", command=cmd_str, timeout=timeout_val)
            await self._terminate(process)
            return ProcessResult(
                command=cmd_str,
                exit_code=None,
                stdout=stdout_buf.text(),
                stderr=stderr_buf.text(),
                duration=time.perf_counter() - start_time,
                timed_out=True,
                truncated=stdout_buf.truncated or stderr_buf.truncated,
            )
        except asyncio.CancelledError:
            await self._terminate(process)
            raise

        duration = time.perf_counter() - start_time
        exit_code = process.returncode
        truncated = stdout_buf.truncated or stderr_buf.truncated

        if truncated:
            logger.warning("command_output_truncated", command=cmd_str, limit=self.output_limit)
        if exit_code != 0:
            logger.warning(
                "command_failed",
                command=cmd_str,
                exit_code=exit_code,
                stderr_snippet=stderr_buf.text()[:200],
            )
        else:
            logger.debug("command_success", command=cmd_str, duration=duration)

        return ProcessResult(
            command=cmd_str,
            exit_code=exit_code,
            stdout=stdout_buf.text(),
            stderr=stderr_buf.text(),
            duration=duration,
            truncated=truncated,
        )

    @staticmethod
    async def _drain(stream: Optional[asyncio.StreamReader], buffer: _OutputBuffer) -> None:
        if stream is None:
            return
        while True:
            chunk = await stream.read(_READ_CHUNK)
            if not chunk:
                break
            buffer.feed(chunk)

    async def _collect(
        self,
        process: asyncio.subprocess.Process,
        stdout_buf: _OutputBuffer,
        stderr_buf: _OutputBuffer,
    ) -> None:
        await asyncio.gather(
            self._drain(process.stdout, stdout_buf),
            self._drain(process.stderr, stderr_buf),
        )
        await process.wait()

    async def _terminate(self, process: asyncio.subprocess.Process) -> None:
        """
        Stop the whole process group: SIGTERM, then SIGKILL after the grace period.

        The group is signalled even when the leader has already exited, since
        background children may still be running and holding the pipes.
        """
        # start_new_session makes the child its own group leader
        pgid = process.pid
        if not self._signal_group(pgid, signal.SIGTERM):
            await process.wait()
            return

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.kill_grace_period
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(process.wait(), timeout=self.kill_grace_period)
        while self._signal_group(pgid, 0) and loop.time() < deadline:
            await asyncio.sleep(0.05)

        if self._signal_group(pgid, 0):
            logger.warning("command_kill", pid=process.pid)
            self._signal_group(pgid, signal.SIGKILL)
        await process.wait()

    @staticmethod
    def _signal_group(pgid: int, sig: int) -> bool:
        """Send ``sig`` to the group; False once no member is left."""
        try:
            os.killpg(pgid, sig)
        except ProcessLookupError:
            return False
        return True
