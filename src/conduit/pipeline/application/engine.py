"""
Pipeline Engine.

Validates a PipelineDefinition, runs its stages strictly in declaration
order, halts on the first failing stage, then runs the outcome post-action
branch followed by ``always``. No retries: callers decide whether to
re-run.
"""

import os
from pathlib import Path
from typing import List, Mapping, Optional, Union

from conduit.credentials.application.credential_store import CredentialStore
from conduit.pipeline.application.definition_validator import DefinitionValidator
from conduit.pipeline.application.run_recorder import RunRecorder
from conduit.pipeline.application.stage_executor import StageExecutor
from conduit.pipeline.domain.enums import PipelineStatus, PostBranch
from conduit.pipeline.domain.models import PipelineDefinition, RunReport, Stage
from conduit.shared.domain.exceptions import InvalidDefinition
from conduit.shared.infrastructure.execution.process_runner import ProcessRunner
from conduit.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class PipelineEngine:
    """
    Runs pipeline definitions.

    The process facility, base environment and workspace are passed in
    here rather than read from process-wide state, so several engines can
    coexist in one process. One engine may run independent
    pipelines concurrently; each run owns its own RunRecorder.
    """

    def __init__(
        self,
        runner: ProcessRunner,
        credential_store: CredentialStore,
        base_env: Optional[Mapping[str, str]] = None,
        preflight_credentials: bool = False,
        workspace: Optional[Union[str, Path]] = None,
    ):
        self.runner = runner
        self.credential_store = credential_store
        self.base_env = dict(os.environ) if base_env is None else dict(base_env)
        self.validator = DefinitionValidator(credential_store, preflight_credentials)
        self.stage_executor = StageExecutor(runner, workspace=workspace)

    def validate(self, definition: PipelineDefinition) -> List[str]:
        """Problems that would stop ``definition`` from running."""
        return self.validator.problems(definition)

    async def run_async(self, definition: PipelineDefinition, run_id: Optional[str] = None) -> RunReport:
        """
        Execute a pipeline.

        Returns:
            The finalized RunReport; stage failures are recorded in it

        Raises:
            InvalidDefinition: Before any command runs, if the definition
                is structurally invalid
        """
        problems = self.validate(definition)
        if problems:
            logger.warning("pipeline_invalid", pipeline=definition.name, problems=problems)
            raise InvalidDefinition(problems, {"pipeline": definition.name})

        recorder = RunRecorder(definition, run_id)
        log = logger.bind(pipeline=definition.name, run_id=recorder.run_id)

        recorder.start()
        log.info("pipeline_started", stages=len(definition.stages))

        env = dict(self.base_env)
        env.update(definition.environment)

        status = PipelineStatus.SUCCEEDED
        for stage in definition.stages:
            result = await self.stage_executor.execute_async(
                stage, self.credential_store, base_env=env, default_timeout=definition.timeout
            )
            recorder.record_stage(result)
            if not result.succeeded:
                status = PipelineStatus.FAILED
                break

        recorder.complete(status)
        outcome = PostBranch.SUCCESS if status is PipelineStatus.SUCCEEDED else PostBranch.FAILURE

        for branch in (outcome, PostBranch.ALWAYS):
            commands = definition.post.for_branch(branch)
            if not commands:
                continue
            result = await self.stage_executor.execute_async(
                Stage(name=branch.stage_name, commands=commands),
                self.credential_store,
                base_env=env,
                default_timeout=definition.timeout,
            )
            recorder.record_post(branch, result)
            if not result.succeeded:
                # Recorded only; the pipeline outcome is already decided
                log.warning("post_action_failed", branch=branch.value, reason=result.reason.value if result.reason else None)

        report = recorder.finalize()
        log.info(
            "pipeline_finished",
            status=report.status.value,
            duration=report.duration,
            executed=len(report.stage_results),
            not_executed=list(report.not_executed),
        )
        return report
