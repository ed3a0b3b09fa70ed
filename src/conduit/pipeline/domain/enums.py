"""
Pipeline domain enums.

Defines pipeline and stage execution states, failure reasons and
post-action branches.
"""

from enum import Enum


class PipelineStatus(Enum):
    """
    Pipeline run status.

    PENDING -> RUNNING -> {SUCCEEDED, FAILED}
    """

    PENDING = "pending"  # Run created, not started
    RUNNING = "running"  # Executing stages
    SUCCEEDED = "succeeded"  # Every stage succeeded
    FAILED = "failed"  # A stage failed; later stages not executed


class StageStatus(Enum):
    """Outcome of a single stage."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"  # Declared but not executed (reports only)


class FailureReason(Enum):
    """Why a stage failed."""

    CREDENTIAL_RESOLUTION_FAILED = "credential_resolution_failed"
    LAUNCH_ERROR = "launch_error"
    TIMED_OUT = "timed_out"
    NON_ZERO_EXIT = "non_zero_exit"


class PostBranch(Enum):
    """
    Post-action branch.

    Declaration order is execution order: the outcome branch runs first,
    ALWAYS runs last.
    """

    SUCCESS = "success"
    FAILURE = "failure"
    ALWAYS = "always"

    @property
    def stage_name(self) -> str:
        """Name of the synthetic stage a branch executes as."""
        return f"post:{self.value}"
