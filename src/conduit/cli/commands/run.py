"""
Run Command - execute a pipeline definition file

Exit codes:
    0  pipeline succeeded
    1  pipeline failed (a stage failed)
    2  invalid definition or invalid command-line input
"""

import asyncio
from pathlib import Path
from typing import List, Optional

import typer
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from conduit.cli.helpers.credential_sources import build_credential_store
from conduit.pipeline.application.definition_loader import load_definition
from conduit.pipeline.application.engine import PipelineEngine
from conduit.pipeline.domain.enums import PipelineStatus, StageStatus
from conduit.pipeline.domain.models import RunReport
from conduit.reports.reporter import ReportFormat, ResultReporter
from conduit.shared.domain.exceptions import ConfigurationError, CredentialError, InvalidDefinition
from conduit.shared.infrastructure.config import settings
from conduit.shared.infrastructure.execution.process_runner import SubprocessRunner
from conduit.shared.infrastructure.logging import get_logger

console = Console()
logger = get_logger(__name__)

EXIT_SUCCEEDED = 0
EXIT_FAILED = 1
EXIT_INVALID = 2

_STATUS_STYLE = {
    StageStatus.SUCCEEDED: "[green]SUCCEEDED[/green]",
    StageStatus.FAILED: "[red]FAILED[/red]",
    StageStatus.SKIPPED: "[dim]SKIPPED[/dim]",
}


def create_stage_table(report: RunReport) -> Table:
    """Stage results table, including stages that never ran."""
    table = Table(title=f"Pipeline {report.pipeline}", box=box.ROUNDED)
    table.add_column("Stage", style="cyan")
    table.add_column("Status")
    table.add_column("Duration", justify="right")
    table.add_column("Reason")

    executed = {r.name: r for r in report.stage_results}
    for name, status in report.stage_statuses():
        result = executed.get(name) if status is not StageStatus.SKIPPED else None
        table.add_row(
            escape(name),
            _STATUS_STYLE[status],
            f"{result.duration:.2f}s" if result else "-",
            result.reason.value if result and result.reason else "",
        )
    for result in report.post_results:
        table.add_row(
            f"[dim]{result.name}[/dim]",
            _STATUS_STYLE[result.status],
            f"{result.duration:.2f}s",
            result.reason.value if result.reason else "",
        )
    return table


def run(
    pipeline_file: Path = typer.Argument(..., help="Pipeline definition (YAML)"),
    credential: List[str] = typer.Option(
        [],
        "--credential",
        "-c",
        help="Credential from environment: ID=VAR or ID=USER_VAR:PASS_VAR (repeatable)",
    ),
    output_format: ReportFormat = typer.Option(ReportFormat.TEXT, "--format", "-f", help="Output format"),
    report_path: Optional[Path] = typer.Option(
        None, "--report", "-r", help="Also write the report here (.json writes JSON, anything else text)"
    ),
    workspace: Optional[Path] = typer.Option(None, "--workspace", "-w", help="Base directory for commands"),
    preflight: bool = typer.Option(
        settings.preflight_credentials,
        "--preflight/--no-preflight",
        help="Reject the pipeline up front if a declared credential is missing",
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", min=0.001, help="Default per-command timeout in seconds"
    ),
) -> None:
    """
    Run a pipeline definition.

    Example:
        conduit run pipeline.yaml
        conduit run pipeline.yaml -c dockerhub=DOCKER_USER:DOCKER_PASS
        conduit run pipeline.yaml --format json --report reports/run.json
    """
    exit_code = asyncio.run(
        run_pipeline(pipeline_file, credential, output_format, report_path, workspace, preflight, timeout)
    )
    raise typer.Exit(code=exit_code)


async def run_pipeline(
    pipeline_file: Path,
    credential_specs: List[str],
    output_format: ReportFormat,
    report_path: Optional[Path],
    workspace: Optional[Path],
    preflight: bool,
    timeout: Optional[float],
) -> int:
    """Async run logic; returns the process exit code."""
    try:
        definition = load_definition(pipeline_file)
        store = build_credential_store(credential_specs, mask=settings.redaction_mask)
    except InvalidDefinition as e:
        _print_problems(pipeline_file, e.problems)
        return EXIT_INVALID
    except (ConfigurationError, CredentialError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        return EXIT_INVALID

    runner = SubprocessRunner(
        default_timeout=timeout or settings.command_timeout,
        output_limit=settings.output_limit_bytes,
        kill_grace_period=settings.kill_grace_period,
    )
    engine = PipelineEngine(
        runner,
        store,
        preflight_credentials=preflight,
        workspace=workspace or pipeline_file.resolve().parent,
    )

    try:
        report = await engine.run_async(definition)
    except InvalidDefinition as e:
        _print_problems(pipeline_file, e.problems)
        return EXIT_INVALID

    reporter = ResultReporter(store.redactor())

    if output_format is ReportFormat.JSON:
        typer.echo(reporter.finalize(report, ReportFormat.JSON))
    else:
        console.print(create_stage_table(report))
        failed = report.failed_stage
        if failed is not None:
            console.print(f"[red]Stage {escape(repr(failed.name))} failed:[/red] {escape(failed.message or '')}")
        status_style = "green" if report.succeeded else "red"
        console.print(f"[{status_style}]Pipeline {report.status.value}[/{status_style}] in {report.duration:.2f}s")

    if report_path is not None:
        fmt = ReportFormat.JSON if report_path.suffix.lower() == ".json" else ReportFormat.TEXT
        written = reporter.write(report, report_path, fmt)
        logger.info("report_written", path=str(written), format=fmt.value)

    return EXIT_SUCCEEDED if report.status is PipelineStatus.SUCCEEDED else EXIT_FAILED


def _print_problems(pipeline_file: Path, problems: List[str]) -> None:
    console.print(f"[red]Invalid pipeline definition:[/red] {pipeline_file}")
    for problem in problems:
        console.print(f"  - {escape(problem)}")
