"""Input schema for pipeline documents (YAML / JSON mappings)."""

from typing import Annotated, Any, Dict, List, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from conduit.pipeline.domain.models import Command, PipelineDefinition, PostActions, Stage


def _stringify_environment(value: Any) -> Any:
    # YAML turns `PORT: 8080` into an int and `DEBUG: yes` into a bool
    if isinstance(value, dict):
        return {
            str(k): ("true" if v is True else "false" if v is False else str(v)) if v is not None else ""
            for k, v in value.items()
        }
    return value


def _expand_shorthand_steps(value: Any) -> Any:
    # `- make build` is shorthand for `- run: make build`
    if isinstance(value, list):
        return [{"run": item} if isinstance(item, (str, list)) else item for item in value]
    return value


Environment = Annotated[Dict[str, str], BeforeValidator(_stringify_environment)]


class CommandInput(BaseModel):
    """Validated step."""
    model_config = ConfigDict(extra="forbid")

    run: Union[str, List[str]]
    name: Optional[str] = None
    shell: Optional[bool] = None
    working_dir: Optional[str] = None
    environment: Environment = Field(default_factory=dict)
    timeout: Optional[float] = Field(default=None, gt=0)

    def to_domain(self) -> Command:
        return Command(
            run=self.run,
            shell=self.shell,
            working_dir=self.working_dir,
            environment=self.environment,
            timeout=self.timeout,
            name=self.name,
        )


Steps = Annotated[List[CommandInput], BeforeValidator(_expand_shorthand_steps)]


class StageInput(BaseModel):
    """Validated stage."""
    model_config = ConfigDict(extra="forbid")

    name: str
    steps: Steps = Field(default_factory=list)
    credentials: List[str] = Field(default_factory=list)
    environment: Environment = Field(default_factory=dict)

    def to_domain(self) -> Stage:
        return Stage(
            name=self.name,
            commands=tuple(step.to_domain() for step in self.steps),
            credentials=tuple(self.credentials),
            environment=self.environment,
        )


class PostInput(BaseModel):
    """Validated post-actions block."""
    model_config = ConfigDict(extra="forbid")

    success: Steps = Field(default_factory=list)
    failure: Steps = Field(default_factory=list)
    always: Steps = Field(default_factory=list)

    def to_domain(self) -> PostActions:
        return PostActions(
            success=tuple(c.to_domain() for c in self.success),
            failure=tuple(c.to_domain() for c in self.failure),
            always=tuple(c.to_domain() for c in self.always),
        )


class PipelineDocument(BaseModel):
    """Validated pipeline document."""
    model_config = ConfigDict(extra="forbid")

    name: str
    stages: List[StageInput] = Field(default_factory=list)
    post: PostInput = Field(default_factory=PostInput)
    environment: Environment = Field(default_factory=dict)
    timeout: Optional[float] = Field(default=None, gt=0)

    def to_domain(self) -> PipelineDefinition:
        return PipelineDefinition(
            name=self.name,
            stages=tuple(stage.to_domain() for stage in self.stages),
            post=self.post.to_domain(),
            environment=self.environment,
            timeout=self.timeout,
        )
