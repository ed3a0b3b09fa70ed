"""External process execution."""

from conduit.shared.infrastructure.execution.process_runner import (
    ProcessResult,
    ProcessRunner,
    SubprocessRunner,
)

__all__ = ["ProcessResult", "ProcessRunner", "SubprocessRunner"]
