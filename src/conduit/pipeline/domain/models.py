"""
Pipeline domain models.

Definition entities (PipelineDefinition, Stage, Command, PostActions) are
immutable once parsed. Result entities (CommandResult, StageResult,
RunReport) are produced once and never changed afterwards.
"""

import shlex
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from conduit.pipeline.domain.enums import FailureReason, PipelineStatus, PostBranch, StageStatus
from conduit.shared.domain.base_model import BaseDomainModel


def _frozen_mapping(values: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    return MappingProxyType(dict(values or {}))


@dataclass(frozen=True)
class Command(BaseDomainModel):
    """
    A single external-process invocation.

    ``run`` is a shell string or an argument list. ``shell`` defaults to
    True for strings (like a Jenkins ``sh`` step) and False for lists.
    Environment values may contain credential placeholders.
    """

    run: Union[str, Tuple[str, ...]]
    shell: Optional[bool] = None
    working_dir: Optional[str] = None
    environment: Mapping[str, str] = field(default_factory=dict)
    timeout: Optional[float] = None
    name: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.run, str):
            object.__setattr__(self, "run", tuple(self.run))
        if self.shell is None:
            object.__setattr__(self, "shell", isinstance(self.run, str))
        object.__setattr__(self, "environment", _frozen_mapping(self.environment))

    @property
    def display(self) -> str:
        """Textual form of the command; placeholders are never expanded here."""
        if isinstance(self.run, str):
            return self.run
        return shlex.join(self.run)

    @property
    def is_empty(self) -> bool:
        if isinstance(self.run, str):
            return not self.run.strip()
        return not self.run or not self.run[0].strip()


@dataclass(frozen=True)
class Stage(BaseDomainModel):
    """Named, ordered group of commands with the credentials it needs."""

    name: str
    commands: Tuple[Command, ...]
    credentials: Tuple[str, ...] = ()
    environment: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "commands", tuple(self.commands))
        object.__setattr__(self, "credentials", tuple(self.credentials))
        object.__setattr__(self, "environment", _frozen_mapping(self.environment))


@dataclass(frozen=True)
class PostActions(BaseDomainModel):
    """Commands run after the stages, conditioned on the pipeline outcome."""

    success: Tuple[Command, ...] = ()
    failure: Tuple[Command, ...] = ()
    always: Tuple[Command, ...] = ()

    def __post_init__(self) -> None:
        for branch in PostBranch:
            object.__setattr__(self, branch.value, tuple(getattr(self, branch.value)))

    def for_branch(self, branch: PostBranch) -> Tuple[Command, ...]:
        return getattr(self, branch.value)


@dataclass(frozen=True)
class PipelineDefinition(BaseDomainModel):
    """
    Declarative pipeline: ordered stages plus post-actions.

    ``environment`` applies to every stage and post-action and may not
    reference credentials. ``timeout`` is the default per-command timeout.
    """

    name: str
    stages: Tuple[Stage, ...]
    post: PostActions = field(default_factory=PostActions)
    environment: Mapping[str, str] = field(default_factory=dict)
    timeout: Optional[float] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "stages", tuple(self.stages))
        object.__setattr__(self, "environment", _frozen_mapping(self.environment))

    @property
    def stage_names(self) -> Tuple[str, ...]:
        return tuple(stage.name for stage in self.stages)

    def referenced_credentials(self) -> Tuple[str, ...]:
        """Every credential identifier declared by any stage, in first-use order."""
        seen: Dict[str, None] = {}
        for stage in self.stages:
            for identifier in stage.credentials:
                seen.setdefault(identifier, None)
        return tuple(seen)


@dataclass(frozen=True)
class CommandResult(BaseDomainModel):
    """
    Outcome of one command.

    ``exit_code`` is None when the process never produced one (it could
    not be launched, or was terminated on timeout).
    """

    command: str
    exit_code: Optional[int]
    stdout: str = ""
    stderr: str = ""
    duration: float = 0.0
    timed_out: bool = False
    truncated: bool = False
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0 and not self.timed_out and self.error is None


@dataclass(frozen=True)
class StageResult(BaseDomainModel):
    """Record of one executed stage (or post-action branch)."""

    name: str
    status: StageStatus
    started_at: datetime
    finished_at: datetime
    duration: float
    commands: Tuple[CommandResult, ...] = ()
    reason: Optional[FailureReason] = None
    message: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "commands", tuple(self.commands))

    @property
    def succeeded(self) -> bool:
        return self.status is StageStatus.SUCCEEDED

    @property
    def exit_codes(self) -> Tuple[Optional[int], ...]:
        return tuple(c.exit_code for c in self.commands)

    @property
    def output(self) -> str:
        """Captured stdout and stderr of every command, in execution order."""
        return "".join(c.stdout + c.stderr for c in self.commands)

    def to_json(self) -> Dict[str, Any]:
        data = super().to_json()
        data["exitCodes"] = list(self.exit_codes)
        return data


@dataclass(frozen=True)
class RunReport(BaseDomainModel):
    """Complete, immutable record of one pipeline execution."""

    pipeline: str
    run_id: str
    status: PipelineStatus
    started_at: datetime
    finished_at: datetime
    duration: float
    stage_results: Tuple[StageResult, ...] = ()
    not_executed: Tuple[str, ...] = ()
    post_branches: Tuple[PostBranch, ...] = ()
    post_results: Tuple[StageResult, ...] = ()

    def __post_init__(self) -> None:
        for name in ("stage_results", "not_executed", "post_branches", "post_results"):
            object.__setattr__(self, name, tuple(getattr(self, name)))

    @property
    def succeeded(self) -> bool:
        return self.status is PipelineStatus.SUCCEEDED

    @property
    def failed_stage(self) -> Optional[StageResult]:
        """The stage that stopped the run, if any."""
        return next((r for r in self.stage_results if not r.succeeded), None)

    def stage_statuses(self) -> Tuple[Tuple[str, StageStatus], ...]:
        """Stage name/status pairs, including declared stages that never ran."""
        executed = tuple((r.name, r.status) for r in self.stage_results)
        return executed + tuple((name, StageStatus.SKIPPED) for name in self.not_executed)

    def post_result(self, branch: PostBranch) -> Optional[StageResult]:
        return next((r for r in self.post_results if r.name == branch.stage_name), None)
