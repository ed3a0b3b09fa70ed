"""End-to-end engine runs against real child processes."""

import os
import sys

import pytest

from conduit.credentials.application.credential_store import CredentialStore
from conduit.credentials.domain.models import Credential
from conduit.pipeline.application.engine import PipelineEngine
from conduit.pipeline.domain.enums import FailureReason, PipelineStatus, PostBranch, StageStatus
from conduit.pipeline.domain.models import Command, PipelineDefinition, PostActions, Stage
from conduit.shared.infrastructure.execution.process_runner import SubprocessRunner

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="process groups are POSIX-only")


@pytest.mark.asyncio
async def test_timed_out_command_fails_stage_promptly(python_cmd):
    definition = PipelineDefinition(
        name="slow",
        stages=(
            Stage("Sleep", (Command(python_cmd("import time; time.sleep(10)"), timeout=1),)),
            Stage("After", (Command(python_cmd("print('never')")),)),
        ),
    )
    engine = PipelineEngine(SubprocessRunner(kill_grace_period=1.0), CredentialStore(), base_env=dict(os.environ))

    report = await engine.run_async(definition)

    assert report.status is PipelineStatus.FAILED
    stage = report.stage_results[0]
    assert stage.reason is FailureReason.TIMED_OUT
    assert stage.commands[0].timed_out
    assert stage.commands[0].exit_code is None
    assert 0.9 <= stage.duration < 5.0
    assert report.not_executed == ("After",)


@pytest.mark.asyncio
async def test_credential_reaches_child_and_is_masked(python_cmd, tmp_path):
    store = CredentialStore([Credential.token("api", "tok-live-998877")])
    definition = PipelineDefinition(
        name="publish",
        stages=(
            Stage(
                "Publish",
                (Command(python_cmd("import os; print('key', os.environ['API_TOKEN'])")),),
                credentials=("api",),
                environment={"API_TOKEN": "${credentials.api}"},
            ),
        ),
    )
    engine = PipelineEngine(SubprocessRunner(), store, base_env=dict(os.environ), workspace=tmp_path)

    report = await engine.run_async(definition)

    assert report.status is PipelineStatus.SUCCEEDED
    assert report.stage_results[0].status is StageStatus.SUCCEEDED
    assert report.stage_results[0].commands[0].stdout == "key ****\n"


@pytest.mark.asyncio
async def test_missing_binary_is_launch_error():
    definition = PipelineDefinition(
        name="broken",
        stages=(Stage("Run", (Command(["definitely-not-a-real-binary-xyz"]),)),),
    )
    engine = PipelineEngine(SubprocessRunner(), CredentialStore(), base_env=dict(os.environ))

    report = await engine.run_async(definition)

    assert report.failed_stage.reason is FailureReason.LAUNCH_ERROR
    assert report.failed_stage.commands[0].exit_code is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "command",
    [
        Command("echo 'unbalanced", shell=False),
        Command(["echo", "a\x00b"]),
        Command("true", environment={"X": "a\x00b"}),
    ],
    ids=["unbalanced-quote", "nul-in-argv", "nul-in-env"],
)
async def test_unlaunchable_command_is_recorded_and_always_runs(command, python_cmd, tmp_path):
    marker = tmp_path / "always.txt"
    definition = PipelineDefinition(
        name="odd-args",
        stages=(Stage("Run", (command,)), Stage("Next", (Command("true"),))),
        post=PostActions(always=(Command(python_cmd(f"open({str(marker)!r}, 'w').write('ran')")),)),
    )
    engine = PipelineEngine(SubprocessRunner(), CredentialStore(), base_env=dict(os.environ))

    assert engine.validate(definition) == []
    report = await engine.run_async(definition)

    assert report.status is PipelineStatus.FAILED
    assert report.failed_stage.reason is FailureReason.LAUNCH_ERROR
    assert report.not_executed == ("Next",)
    assert report.post_result(PostBranch.ALWAYS).succeeded
    assert marker.read_text() == "ran"
