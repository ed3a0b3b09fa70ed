"""Pipeline application layer - loading, validation and execution."""

from conduit.pipeline.application.definition_loader import load_definition, parse_definition
from conduit.pipeline.application.definition_validator import DefinitionValidator
from conduit.pipeline.application.engine import PipelineEngine
from conduit.pipeline.application.run_recorder import RunRecorder
from conduit.pipeline.application.stage_executor import StageExecutor

__all__ = [
    "DefinitionValidator",
    "PipelineEngine",
    "RunRecorder",
    "StageExecutor",
    "load_definition",
    "parse_definition",
]
