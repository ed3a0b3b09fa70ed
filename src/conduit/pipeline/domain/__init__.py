"""Pipeline domain package."""

from conduit.pipeline.domain.enums import FailureReason, PipelineStatus, PostBranch, StageStatus
from conduit.pipeline.domain.models import (
    Command,
    CommandResult,
    PipelineDefinition,
    PostActions,
    RunReport,
    Stage,
    StageResult,
)

__all__ = [
    "Command",
    "CommandResult",
    "FailureReason",
    "PipelineDefinition",
    "PipelineStatus",
    "PostActions",
    "PostBranch",
    "RunReport",
    "Stage",
    "StageResult",
    "StageStatus",
]
