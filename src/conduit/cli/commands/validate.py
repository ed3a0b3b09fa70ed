"""Validate Command - check a pipeline definition without running it"""

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from conduit.pipeline.application.definition_loader import load_definition
from conduit.pipeline.application.definition_validator import DefinitionValidator
from conduit.shared.domain.exceptions import InvalidDefinition

console = Console()


def validate(
    pipeline_file: Path = typer.Argument(..., help="Pipeline definition (YAML)"),
) -> None:
    """
    Validate a pipeline definition.

    Example:
        conduit validate pipeline.yaml
    """
    try:
        definition = load_definition(pipeline_file)
        DefinitionValidator().validate(definition)
    except InvalidDefinition as e:
        console.print(f"[red]Invalid pipeline definition:[/red] {pipeline_file}")
        for problem in e.problems:
            console.print(f"  - {escape(problem)}")
        raise typer.Exit(code=2)

    credentials = definition.referenced_credentials()
    console.print(f"[green]Pipeline {escape(repr(definition.name))} is valid[/green] ({len(definition.stages)} stages)")
    for stage in definition.stages:
        console.print(f"  [cyan]{escape(stage.name)}[/cyan] [dim]{len(stage.commands)} command(s)[/dim]")
    if credentials:
        console.print(f"[dim]Credentials required:[/dim] {', '.join(credentials)}")
