"""
Conduit CLI - declarative CI/CD pipeline runner
Main entry point for the command-line interface

Usage:
    conduit run pipeline.yaml       # Run a pipeline
    conduit validate pipeline.yaml  # Check a definition without running it
    conduit version                 # Show version information
"""

import typer
from rich.console import Console
from rich.panel import Panel

from conduit import __version__
from conduit.cli.commands import run, validate
from conduit.shared.infrastructure.config import settings
from conduit.shared.infrastructure.logging import configure_logging

app = typer.Typer(
    name="conduit",
    help="Conduit - run declarative CI/CD pipelines",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()

# Register commands
app.command(name="run", help="Run a pipeline definition")(run.run)
app.command(name="validate", help="Validate a pipeline definition")(validate.validate)


@app.command()
def version():
    """Show Conduit version information"""
    console.print(Panel.fit(
        "[bold cyan]Conduit[/bold cyan]\n"
        f"[dim]Version:[/dim] {__version__}\n"
        f"[dim]Application:[/dim] {settings.app_name} ({settings.app_env})\n",
        title="About Conduit",
        border_style="cyan"
    ))


def main():
    """Main entry point"""
    configure_logging()
    app()


if __name__ == "__main__":
    main()
