"""
Pipeline definition loader.

Default parser for pipeline documents: YAML (or JSON, which is YAML) is
read with PyYAML, checked against the pydantic document schema, then
turned into an immutable PipelineDefinition. Structural rules that need
the whole definition (unique stage names, credential references) are
checked later by the DefinitionValidator.
"""

from pathlib import Path
from typing import Any, List, Mapping, Optional, Union

import yaml
from pydantic import ValidationError

from conduit.pipeline.domain.models import PipelineDefinition
from conduit.pipeline.validators.definition_schema import PipelineDocument
from conduit.shared.domain.exceptions import InvalidDefinition
from conduit.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


def _format_validation_errors(error: ValidationError) -> List[str]:
    problems = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "document"
        problems.append(f"{location}: {item['msg']}")
    return problems


def parse_definition(data: Any, default_name: Optional[str] = None) -> PipelineDefinition:
    """
    Build a PipelineDefinition from an already-parsed mapping.

    Args:
        data: Mapping as produced by ``yaml.safe_load`` / ``json.load``
        default_name: Pipeline name used when the document has none

    Raises:
        InvalidDefinition: If the document does not match the schema
    """
    if not isinstance(data, Mapping):
        raise InvalidDefinition([f"document: expected a mapping, got {type(data).__name__}"])

    document = dict(data)
    if default_name and not document.get("name"):
        document["name"] = default_name

    try:
        return PipelineDocument.model_validate(document).to_domain()
    except ValidationError as e:
        raise InvalidDefinition(_format_validation_errors(e)) from e


def load_definition(path: Union[str, Path]) -> PipelineDefinition:
    """
    Load a pipeline definition file.

    The pipeline name defaults to the file stem.

    Raises:
        InvalidDefinition: If the file is unreadable, not YAML, or invalid
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise InvalidDefinition([f"{path}: {e.strerror or e}"], {"path": str(path)}) from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise InvalidDefinition([f"{path}: YAML parse error: {e}"], {"path": str(path)}) from e

    definition = parse_definition(data, default_name=path.stem)
    logger.debug("definition_loaded", path=str(path), pipeline=definition.name, stages=len(definition.stages))
    return definition
