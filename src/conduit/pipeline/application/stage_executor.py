"""
Stage Executor.

Runs one stage: resolves its credentials, builds the shared environment
snapshot, then runs its commands in order until the first failure.
Every failure is returned as data on the StageResult.
"""

import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple, Union

from conduit.credentials.application.credential_store import CredentialStore
from conduit.credentials.application.placeholders import expand_environment
from conduit.credentials.application.redactor import Redactor
from conduit.credentials.domain.models import Credential
from conduit.pipeline.domain.enums import FailureReason, StageStatus
from conduit.pipeline.domain.models import Command, CommandResult, Stage, StageResult
from conduit.shared.domain.exceptions import CredentialError, LaunchError
from conduit.shared.infrastructure.execution.process_runner import ProcessRunner
from conduit.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class StageExecutor:
    """Executes stages through an injected ProcessRunner."""

    def __init__(
        self,
        runner: ProcessRunner,
        workspace: Optional[Union[str, Path]] = None,
    ):
        self.runner = runner
        self.workspace = Path(workspace) if workspace is not None else None

    async def execute_async(
        self,
        stage: Stage,
        credential_store: CredentialStore,
        base_env: Optional[Mapping[str, str]] = None,
        default_timeout: Optional[float] = None,
    ) -> StageResult:
        """
        Execute a stage.

        Args:
            stage: Stage to run
            credential_store: Source of the stage's declared credentials
            base_env: Environment every command starts from
            default_timeout: Timeout for commands that declare none;
                None defers to the runner's default

        Returns:
            StageResult, SUCCEEDED only if every command exited with 0
        """
        started_at = datetime.now(timezone.utc)
        start = time.perf_counter()
        redactor = credential_store.redactor()
        log = logger.bind(stage=stage.name)
        log.info("stage_started", commands=len(stage.commands))

        try:
            command_envs = self._prepare_environments(stage, credential_store, base_env)
        except CredentialError as e:
            message = redactor.redact(str(e))
            log.warning("stage_credentials_failed", error=message)
            return self._result(
                stage, started_at, start, [],
                reason=FailureReason.CREDENTIAL_RESOLUTION_FAILED,
                message=message,
            )

        results: List[CommandResult] = []
        for position, (command, env) in enumerate(command_envs, start=1):
            timeout = command.timeout if command.timeout is not None else default_timeout
            result = await self._run_command(command, env, timeout, redactor)
            results.append(result)

            if not result.succeeded:
                reason, message = self._failure(result, timeout)
                log.warning(
                    "stage_failed",
                    command=result.command,
                    position=position,
                    reason=reason.value,
                    exit_code=result.exit_code,
                )
                return self._result(stage, started_at, start, results, reason=reason, message=message)

        log.info("stage_succeeded", duration=time.perf_counter() - start)
        return self._result(stage, started_at, start, results)

    def _prepare_environments(
        self,
        stage: Stage,
        credential_store: CredentialStore,
        base_env: Optional[Mapping[str, str]],
    ) -> List[Tuple[Command, Dict[str, str]]]:
        """
        Resolve credentials and expand every placeholder up front, so a
        resolution failure happens before any command runs.
        """
        resolved: Dict[str, Credential] = {
            identifier: credential_store.resolve(identifier) for identifier in stage.credentials
        }

        snapshot = dict(base_env or {})
        snapshot.update(expand_environment(stage.environment, resolved))

        prepared = []
        for command in stage.commands:
            env = dict(snapshot)
            env.update(expand_environment(command.environment, resolved))
            prepared.append((command, env))
        return prepared

    def _working_dir(self, command: Command) -> Optional[Path]:
        if command.working_dir is None:
            return self.workspace
        path = Path(command.working_dir)
        if self.workspace is not None and not path.is_absolute():
            return self.workspace / path
        return path

    async def _run_command(
        self,
        command: Command,
        env: Dict[str, str],
        timeout: Optional[float],
        redactor: Redactor,
    ) -> CommandResult:
        display = redactor.redact(command.display)
        try:
            outcome = await self.runner.run_async(
                command.run,
                cwd=self._working_dir(command),
                env=env,
                timeout=timeout,
                shell=bool(command.shell),
            )
        except LaunchError as e:
            return CommandResult(command=display, exit_code=None, error=redactor.redact(str(e)))

        return CommandResult(
            command=display,
            exit_code=outcome.exit_code,
            stdout=redactor.redact(outcome.stdout),
            stderr=redactor.redact(outcome.stderr),
            duration=outcome.duration,
            timed_out=outcome.timed_out,
            truncated=outcome.truncated,
        )

    @staticmethod
    def _failure(result: CommandResult, timeout: Optional[float]) -> Tuple[FailureReason, str]:
        if result.error is not None:
            return FailureReason.LAUNCH_ERROR, result.error
        if result.timed_out:
            limit = f" after {timeout:g}s" if timeout is not None else ""
            return FailureReason.TIMED_OUT, f"Command {result.command!r} timed out{limit}"
        return FailureReason.NON_ZERO_EXIT, f"Command {result.command!r} exited with code {result.exit_code}"

    @staticmethod
    def _result(
        stage: Stage,
        started_at: datetime,
        start: float,
        commands: List[CommandResult],
        reason: Optional[FailureReason] = None,
        message: Optional[str] = None,
    ) -> StageResult:
        return StageResult(
            name=stage.name,
            status=StageStatus.SUCCEEDED if reason is None else StageStatus.FAILED,
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
            duration=time.perf_counter() - start,
            commands=tuple(commands),
            reason=reason,
            message=message,
        )
