"""Append-only recorder that builds the RunReport of one pipeline run."""

import time
from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from conduit.pipeline.domain.enums import PipelineStatus, PostBranch
from conduit.pipeline.domain.models import PipelineDefinition, RunReport, StageResult


class RunRecorder:
    """
    Mutable run state owned by exactly one engine call.

    Tracks PENDING -> RUNNING -> {SUCCEEDED, FAILED}; stage results are
    appended one at a time while RUNNING, post results once the outcome is
    known. ``finalize`` freezes everything into a RunReport.
    """

    def __init__(self, definition: PipelineDefinition, run_id: Optional[str] = None):
        self.pipeline = definition.name
        self.declared_stages = definition.stage_names
        self.run_id = run_id or str(uuid4())
        self.status = PipelineStatus.PENDING
        self.started_at: Optional[datetime] = None
        self._start: float = 0.0
        self._stage_results: List[StageResult] = []
        self._post_branches: List[PostBranch] = []
        self._post_results: List[StageResult] = []
        self._report: Optional[RunReport] = None

    def start(self) -> None:
        self._require(PipelineStatus.PENDING, "start")
        self.status = PipelineStatus.RUNNING
        self.started_at = datetime.now(timezone.utc)
        self._start = time.perf_counter()

    def record_stage(self, result: StageResult) -> None:
        self._require(PipelineStatus.RUNNING, "record a stage")
        self._stage_results.append(result)

    def complete(self, status: PipelineStatus) -> None:
        self._require(PipelineStatus.RUNNING, "complete")
        if status not in (PipelineStatus.SUCCEEDED, PipelineStatus.FAILED):
            raise ValueError(f"Terminal status expected, got {status.value}")
        self.status = status

    def record_post(self, branch: PostBranch, result: StageResult) -> None:
        if self.status not in (PipelineStatus.SUCCEEDED, PipelineStatus.FAILED):
            raise RuntimeError("Post-actions are recorded after the pipeline outcome is known")
        self._ensure_open()
        self._post_branches.append(branch)
        self._post_results.append(result)

    def finalize(self) -> RunReport:
        """Freeze the run into a RunReport; idempotent."""
        if self._report is not None:
            return self._report
        if self.status not in (PipelineStatus.SUCCEEDED, PipelineStatus.FAILED):
            raise RuntimeError(f"Cannot finalize a run in status {self.status.value}")

        executed = len(self._stage_results)
        self._report = RunReport(
            pipeline=self.pipeline,
            run_id=self.run_id,
            status=self.status,
            started_at=self.started_at,  # type: ignore[arg-type]
            finished_at=datetime.now(timezone.utc),
            duration=time.perf_counter() - self._start,
            stage_results=tuple(self._stage_results),
            not_executed=self.declared_stages[executed:],
            post_branches=tuple(self._post_branches),
            post_results=tuple(self._post_results),
        )
        return self._report

    def _require(self, expected: PipelineStatus, action: str) -> None:
        self._ensure_open()
        if self.status is not expected:
            raise RuntimeError(f"Cannot {action} in status {self.status.value}")

    def _ensure_open(self) -> None:
        if self._report is not None:
            raise RuntimeError("Run already finalized")
