"""
Result Reporter.

Serializes a finalized RunReport for external sinks (CLI, log files,
dashboards). Pure: the same report always yields the same text, and every
string is passed through the credential redactor first.
"""

import json
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from conduit.credentials.application.redactor import Redactor
from conduit.pipeline.domain.enums import StageStatus
from conduit.pipeline.domain.models import RunReport, StageResult

_TAIL_LINES = 20


class ReportFormat(str, Enum):
    """Serialized report formats."""

    JSON = "json"
    TEXT = "text"


class ResultReporter:
    """Turns RunReports into structured records or readable summaries."""

    def __init__(self, redactor: Optional[Redactor] = None):
        self.redactor = redactor or Redactor()

    def finalize(self, report: RunReport, fmt: Union[ReportFormat, str] = ReportFormat.JSON) -> str:
        """
        Serialize a report.

        Args:
            report: Finalized run report
            fmt: ``json`` (camelCase record) or ``text`` (summary)

        Raises:
            ValueError: If ``fmt`` is not a known format
        """
        fmt = ReportFormat(fmt)
        if fmt is ReportFormat.JSON:
            return json.dumps(self.to_record(report), indent=2, sort_keys=False)
        return self.render_text(report)

    def to_record(self, report: RunReport) -> Dict[str, Any]:
        """Redacted JSON-compatible record of the run."""
        record = report.to_json()
        record["stages"] = [
            {"name": name, "status": status.value} for name, status in report.stage_statuses()
        ]
        return self._redact(record)

    def render_text(self, report: RunReport) -> str:
        lines: List[str] = [
            f"Pipeline {report.pipeline} [{report.status.value}] run {report.run_id} ({report.duration:.2f}s)"
        ]
        executed = {r.name: r for r in report.stage_results}
        width = max((len(name) for name, _ in report.stage_statuses()), default=0)

        for name, status in report.stage_statuses():
            result = executed.get(name) if status is not StageStatus.SKIPPED else None
            lines.append(self._stage_line(name, status, result, width))
            if result is not None and not result.succeeded:
                lines.extend(self._output_tail(result))

        if report.post_results:
            lines.append("Post-actions: " + ", ".join(b.value for b in report.post_branches))
            post_width = max(len(r.name) for r in report.post_results)
            for result in report.post_results:
                lines.append(self._stage_line(result.name, result.status, result, post_width))
                if not result.succeeded:
                    lines.extend(self._output_tail(result))

        return self.redactor.redact("\n".join(lines) + "\n") or ""

    def write(
        self,
        report: RunReport,
        path: Union[str, Path],
        fmt: Union[ReportFormat, str] = ReportFormat.JSON,
    ) -> Path:
        """Write the serialized report to ``path``, creating parent directories."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.finalize(report, fmt), encoding="utf-8")
        return path

    @staticmethod
    def _stage_line(name: str, status: StageStatus, result: Optional[StageResult], width: int) -> str:
        line = f"  {name.ljust(width)}  {status.value:<9}"
        if result is not None:
            line += f"  {result.duration:.2f}s"
            if result.reason is not None:
                line += f"  {result.reason.value}"
                if result.message:
                    line += f": {result.message}"
        return line

    @staticmethod
    def _output_tail(result: StageResult) -> List[str]:
        if not result.commands:
            return []
        last = result.commands[-1]
        output = (last.stdout + last.stderr).rstrip("\n")
        if not output:
            return []
        tail = output.splitlines()[-_TAIL_LINES:]
        lines = [f"    | {line}" for line in tail]
        if last.truncated:
            lines.append("    | [output truncated]")
        return lines

    def _redact(self, value: Any) -> Any:
        if isinstance(value, str):
            return self.redactor.redact(value)
        if isinstance(value, dict):
            return {k: self._redact(v) for k, v in value.items()}
        if isinstance(value, list):
            return [self._redact(v) for v in value]
        return value
