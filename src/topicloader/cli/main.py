"""
Main CLI entry point for topicloader
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.traceback import install

from .. import __version__

# Install rich traceback handler for better error display
install(show_locals=True)

# Initialize console
console = Console()

# Configure logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(console=console, rich_tracebacks=True)],
)


@click.group()
@click.version_option(version=__version__, prog_name="topicloader")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(path_type=Path),
    help="Configuration file (default: ./topicloader.yaml)",
)
@click.pass_context
def cli(
    ctx: click.Context, verbose: bool, no_color: bool, config_path: Optional[Path]
) -> None:
    """
    topicloader - Exported Topic Loader

    Loads exported discussion topics (comments, participants, polls) into
    a SQLite database. Runs are safe to repeat: a topic is only written
    when the document is newer than what is already stored.

    Examples:
      topicloader schema migrate --database topics.db   # Create the tables
      topicloader load --folder ./backup                # Load every export
      topicloader load --workers 20 --strict            # Fail on any bad document
      topicloader config show                           # Show effective settings
    """
    ctx.ensure_object(dict)

    # Configure console
    if no_color:
        ctx.obj["console"] = Console(force_terminal=False, no_color=True)
    else:
        ctx.obj["console"] = console

    # Configure logging level
    if verbose:
        logging.getLogger().setLevel(logging.INFO)
        logging.getLogger("topicloader").setLevel(logging.DEBUG)
        ctx.obj["verbose"] = True
    else:
        ctx.obj["verbose"] = False

    # Store global options
    ctx.obj["no_color"] = no_color
    ctx.obj["config_path"] = config_path


# Import and register commands at module level to support testing
from .commands import config, load, schema  # noqa: E402

cli.add_command(load.load)
cli.add_command(schema.schema)
cli.add_command(config.config)


def main() -> None:
    """Main entry point for the CLI application"""
    try:
        # Run CLI (commands already registered)
        cli()

    except KeyboardInterrupt:
        console.print("\n[yellow]Operation interrupted by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"[red]Unexpected error: {e}[/red]")
        if "--verbose" in sys.argv or "-v" in sys.argv:
            console.print_exception()
        sys.exit(1)


if __name__ == "__main__":
    main()
