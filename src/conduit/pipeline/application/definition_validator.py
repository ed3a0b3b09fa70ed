"""
Structural validation of pipeline definitions.

Runs before any side effect; a non-empty problem list means the run
must not start.
"""

from typing import Iterable, List, Optional, Set

from conduit.credentials.application.credential_store import CredentialStore
from conduit.credentials.application.placeholders import contains_placeholder, find_references
from conduit.pipeline.domain.models import Command, PipelineDefinition
from conduit.pipeline.domain.enums import PostBranch
from conduit.shared.domain.exceptions import InvalidDefinition


class DefinitionValidator:
    """
    Collects every problem in a definition instead of stopping at the first.

    Credential existence in the store is only checked when
    ``preflight_credentials`` is set; otherwise a missing credential is a
    per-stage CREDENTIAL_RESOLUTION_FAILED at run time.
    """

    def __init__(
        self,
        credential_store: Optional[CredentialStore] = None,
        preflight_credentials: bool = False,
    ):
        self.credential_store = credential_store
        self.preflight_credentials = preflight_credentials

    def problems(self, definition: PipelineDefinition) -> List[str]:
        problems: List[str] = []

        if not definition.name or not definition.name.strip():
            problems.append("Pipeline name must be non-empty")
        if definition.timeout is not None and definition.timeout <= 0:
            problems.append("Pipeline timeout must be positive")
        if not definition.stages:
            problems.append("Pipeline has no stages")

        for key, value in definition.environment.items():
            if contains_placeholder(value):
                problems.append(f"Pipeline environment variable {key!r} may not reference credentials")

        seen: Set[str] = set()
        for index, stage in enumerate(definition.stages, start=1):
            if not stage.name or not stage.name.strip():
                problems.append(f"Stage #{index} has an empty name")
                label = f"#{index}"
            else:
                label = repr(stage.name)
                if stage.name in seen:
                    problems.append(f"Duplicate stage name: {stage.name!r}")
                seen.add(stage.name)

            if not stage.commands:
                problems.append(f"Stage {label} has no commands")

            declared = set(stage.credentials)
            if any(not identifier.strip() for identifier in declared):
                problems.append(f"Stage {label} declares an empty credential identifier")

            references = self._references(stage.environment.values())
            for command in stage.commands:
                references |= self._references(command.environment.values())
            for identifier in sorted(references - declared):
                problems.append(f"Stage {label} references undeclared credential {identifier!r}")

            problems.extend(self._command_problems(f"Stage {label}", stage.commands))

            if self.preflight_credentials and self.credential_store is not None:
                for identifier in stage.credentials:
                    if identifier.strip() and identifier not in self.credential_store:
                        problems.append(f"Credential {identifier!r} required by stage {label} is not registered")

        for branch in PostBranch:
            commands = definition.post.for_branch(branch)
            problems.extend(self._command_problems(f"Post-action {branch.value!r}", commands))
            for command in commands:
                if self._references(command.environment.values()):
                    problems.append(f"Post-action {branch.value!r} may not reference credentials")

        return problems

    def validate(self, definition: PipelineDefinition) -> None:
        """
        Raises:
            InvalidDefinition: With every problem found
        """
        problems = self.problems(definition)
        if problems:
            raise InvalidDefinition(problems, {"pipeline": definition.name})

    @staticmethod
    def _references(values: Iterable[str]) -> Set[str]:
        references: Set[str] = set()
        for value in values:
            references |= find_references(value)
        return references

    @staticmethod
    def _command_problems(owner: str, commands: Iterable[Command]) -> List[str]:
        problems = []
        for position, command in enumerate(commands, start=1):
            if command.is_empty:
                problems.append(f"{owner} command #{position} is empty")
            if command.timeout is not None and command.timeout <= 0:
                problems.append(f"{owner} command #{position} timeout must be positive")
        return problems
