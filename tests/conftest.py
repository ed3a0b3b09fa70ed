"""Shared test fixtures for Conduit test suite."""

import shlex
import sys
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

import pytest

from conduit.credentials.application.credential_store import CredentialStore
from conduit.credentials.domain.models import Credential
from conduit.pipeline.domain.models import Command, PipelineDefinition, PostActions, Stage
from conduit.shared.infrastructure.execution.process_runner import ProcessResult
from conduit.shared.infrastructure.logging import configure_logging

# Route structlog through stdlib logging on stderr so log lines never end
# up in CLI output captured by CliRunner.
configure_logging(stream=sys.stderr)


@dataclass
class FakeCall:
    command: str
    cwd: Any
    env: Dict[str, str]
    timeout: Optional[float]
    shell: bool


@dataclass
class FakeProcessRunner:
    """
    Scripted ProcessRunner.

    ``outcomes`` maps a command's display text to an exit code, a
    ProcessResult, an exception to raise, or a callable taking the env and
    returning a ProcessResult. Unknown commands exit 0.
    """

    outcomes: Dict[str, Union[int, ProcessResult, BaseException, Callable[[Dict[str, str]], ProcessResult]]] = field(
        default_factory=dict
    )
    calls: List[FakeCall] = field(default_factory=list)

    async def run_async(self, command, cwd=None, env=None, timeout=None, shell=False) -> ProcessResult:
        display = command if isinstance(command, str) else shlex.join(command)
        self.calls.append(FakeCall(display, cwd, dict(env or {}), timeout, shell))

        outcome = self.outcomes.get(display, 0)
        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, ProcessResult):
            return outcome
        if callable(outcome):
            return outcome(dict(env or {}))
        return ProcessResult(
            command=display,
            exit_code=int(outcome),
            stdout=f"ran {display}\n",
            stderr="" if outcome == 0 else f"{display} failed\n",
            duration=0.01,
        )

    @property
    def commands(self) -> List[str]:
        return [call.command for call in self.calls]


@pytest.fixture
def fake_runner():
    """Scripted process runner; every command succeeds unless told otherwise."""
    return FakeProcessRunner()


@pytest.fixture
def credential_store():
    """Store with a docker registry pair and a deploy token."""
    return CredentialStore([
        Credential.username_password("registry", "ci-bot", "s3cr3t-pass"),
        Credential.token("deploy-token", "tok_abcdef123456"),
    ])


@pytest.fixture
def ci_definition():
    """Checkout -> Build -> Push -> Deploy, with post-actions on every branch."""
    return PipelineDefinition(
        name="webapp",
        stages=(
            Stage("Checkout", (Command("git clone https://example.com/webapp.git ."),)),
            Stage("Build", (Command("docker build -t acme/webapp ."),)),
            Stage(
                "Push",
                (Command("docker login -u \"$DOCKER_USER\" --password-stdin"), Command(["docker", "push", "acme/webapp"])),
                credentials=("dockerhub",),
                environment={
                    "DOCKER_USER": "${credentials.dockerhub.username}",
                    "DOCKER_PASS": "${credentials.dockerhub.password}",
                },
            ),
            Stage("Deploy", (Command("kubectl rollout restart deployment/webapp"),)),
        ),
        post=PostActions(
            success=(Command("echo deployed"),),
            failure=(Command("echo notify failure"),),
            always=(Command("docker logout"),),
        ),
    )


@pytest.fixture
def python_cmd():
    """Build an argv list running a Python snippet with the test interpreter."""

    def _make(code: str) -> List[str]:
        return [sys.executable, "-c", code]

    return _make
