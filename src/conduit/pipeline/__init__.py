"""Pipeline module - declarative pipeline definitions and their execution."""

from conduit.pipeline.application import PipelineEngine, load_definition, parse_definition
from conduit.pipeline.domain import (
    Command,
    CommandResult,
    FailureReason,
    PipelineDefinition,
    PipelineStatus,
    PostActions,
    PostBranch,
    RunReport,
    Stage,
    StageResult,
    StageStatus,
)

__all__ = [
    "Command",
    "CommandResult",
    "FailureReason",
    "PipelineDefinition",
    "PipelineEngine",
    "PipelineStatus",
    "PostActions",
    "PostBranch",
    "RunReport",
    "Stage",
    "StageResult",
    "StageStatus",
    "load_definition",
    "parse_definition",
]
