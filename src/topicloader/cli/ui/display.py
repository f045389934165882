"""
Rich display components for configuration, schema and run summaries
"""

from typing import Any, Dict, List, Optional

from rich.panel import Panel
from rich.table import Table

from ...models.outcome_models import DocumentOutcome


def create_config_table(
    config_data: Dict[str, Any], title: str = "Configuration"
) -> Table:
    """
    Create a Rich table for configuration display
    """
    table = Table(title=title, show_header=True, header_style="bold blue")
    table.add_column("Setting", style="cyan", no_wrap=True)
    table.add_column("Value", style="green")
    table.add_column("Source", style="yellow")

    for key, value_info in config_data.items():
        if isinstance(value_info, dict):
            value = value_info.get("value", "not set")
            source = value_info.get("source", "unknown")
        else:
            value = value_info if value_info is not None else "not set"
            source = "config file"

        table.add_row(key, str(value), source)

    return table


def create_summary_table(statistics: Dict[str, Any], title: str = "Load Summary") -> Table:
    """
    Summary of a finished run, built from IngestionStatistics.to_dict()
    """
    outcomes = statistics["outcomes"]
    performance = statistics["performance"]

    table = Table(title=title, show_header=True, header_style="bold blue")
    table.add_column("Outcome", style="cyan", no_wrap=True)
    table.add_column("Documents", justify="right")

    table.add_row("Created", f"[green]{outcomes['created']}[/green]")
    table.add_row("Updated", f"[green]{outcomes['updated']}[/green]")
    table.add_row("Already up to date", str(outcomes["skipped_equal"]))
    table.add_row("Older than stored", str(outcomes["skipped_stale"]))

    failed = outcomes["failed"]
    table.add_row("Failed", f"[red]{failed}[/red]" if failed else "0")

    table.add_section()
    table.add_row("Total", str(statistics["overall"]["total_documents"]))
    table.add_row("Duration", f"{performance['duration_seconds']:.2f}s")
    table.add_row("Throughput", f"{performance['throughput_per_minute']:.1f}/min")

    return table


def create_failures_table(failures: List[DocumentOutcome], limit: int = 20) -> Table:
    """
    Table of failed documents with the stage that failed
    """
    table = Table(title="Failed Documents", show_header=True, header_style="bold red")
    table.add_column("Document", style="cyan")
    table.add_column("Stage", style="yellow", no_wrap=True)
    table.add_column("Reason")

    for outcome in failures[:limit]:
        table.add_row(
            str(outcome.ref),
            outcome.failed_stage or "unknown",
            outcome.error_message or "",
        )

    if len(failures) > limit:
        table.caption = f"... and {len(failures) - limit} more"

    return table


def create_table_counts(counts: Dict[str, int], title: str = "Schema") -> Table:
    table = Table(title=title, show_header=True, header_style="bold blue")
    table.add_column("Table", style="cyan", no_wrap=True)
    table.add_column("Rows", justify="right")

    for name, count in counts.items():
        table.add_row(name, str(count))

    return table


def create_error_display(error: Exception, context: Optional[str] = None) -> Panel:
    """
    Create formatted error display with suggestions
    """
    error_lines = []

    if context:
        error_lines.append(f"Context: {context}")
        error_lines.append("")

    error_lines.append(f"Error: {str(error)}")

    message = str(error).lower()
    suggestions = []

    if "missing" in message and "table" in message:
        suggestions.extend(
            [
                "Create the tables: topicloader schema migrate",
                "Or load with table creation: topicloader load --migrate",
            ]
        )
    elif "database" in message:
        suggestions.extend(
            [
                "Check the database path or PostgreSQL DSN: topicloader config show",
                "Make sure the parent directory exists and is writable",
            ]
        )
    elif "folder" in message or "directory" in message:
        suggestions.extend(
            [
                "Check the source folder: topicloader load --folder PATH",
                "Or set TOPICLOADER_FOLDER",
            ]
        )
    elif "config" in type(error).__name__.lower():
        suggestions.append("Write a fresh configuration: topicloader config init --force")

    if suggestions:
        error_lines.append("")
        error_lines.append("Suggestions:")
        error_lines.extend(f"  {suggestion}" for suggestion in suggestions)

    return Panel("\n".join(error_lines), title="Error", border_style="red", padding=(0, 1))
