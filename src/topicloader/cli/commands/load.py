"""
Load command - ingest a folder of exported topics
"""

import json
import logging
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from ...core.config_manager import ConfigurationError
from ...ingestion.document_source import DocumentSource
from ...ingestion.pipeline import IngestionPipeline
from ...models.errors import SetupError
from ...models.outcome_models import DocumentOutcome
from ...storage.schema import check_schema, migrate_schema
from ..ui.display import create_error_display, create_failures_table, create_summary_table
from ..utils.async_runner import async_command
from .common import (
    apply_database_options,
    apply_log_level,
    database_option,
    load_effective_config,
    open_database,
    postgresql_option,
)

logger = logging.getLogger(__name__)


@click.command()
@click.option(
    "--folder",
    "-f",
    type=click.Path(path_type=Path),
    help="Folder of exported topics (overrides configuration)",
)
@database_option
@postgresql_option
@click.option(
    "--workers",
    "-w",
    type=click.IntRange(min=1),
    help="Number of concurrent workers",
)
@click.option("--migrate", is_flag=True, help="Create missing tables before loading")
@click.option("--strict", is_flag=True, help="Exit with status 1 if any document failed")
@click.option("--no-progress", is_flag=True, help="Disable the progress bar")
@click.option(
    "--report",
    "report_path",
    type=click.Path(path_type=Path, dir_okay=False),
    help="Write every document outcome to this JSON file",
)
@click.pass_context
@async_command
async def load(
    ctx: click.Context,
    folder: Optional[Path],
    database: Optional[Path],
    postgresql: Optional[str],
    workers: Optional[int],
    migrate: bool,
    strict: bool,
    no_progress: bool,
    report_path: Optional[Path],
) -> None:
    """
    Load exported topics into the database.

    Every document is checked against the stored version of its topic:
    newer topics are written with all their comments, participants and
    poll in one transaction, older or identical ones are skipped. A
    broken document is reported and never stops the run.

    Examples:
      topicloader load --folder ./backup
      topicloader load --database topics.db --workers 20 --migrate
      topicloader load --postgresql postgresql://localhost/topics --migrate
    """
    console: Console = ctx.obj["console"]

    try:
        config = await load_effective_config(ctx)
    except ConfigurationError as e:
        console.print(create_error_display(e, "Configuration Error"))
        ctx.exit(1)

    if folder is not None:
        config.source.folder = str(folder)
    apply_database_options(config, database, postgresql)
    if workers is not None:
        config.pipeline.workers = workers
    if migrate:
        config.pipeline.migrate = True

    apply_log_level(ctx, config)

    db = open_database(config)
    try:
        await db.initialize()
        if config.pipeline.migrate:
            await migrate_schema(db)
        await check_schema(db)

        source = DocumentSource(Path(config.source.folder), config.source.patterns)
        refs = source.discover()

        pipeline = IngestionPipeline(
            db,
            source=source,
            serialize_identities=config.pipeline.serialize_identities,
        )

        if not refs:
            console.print(f"[yellow]No documents found in {config.source.folder}[/yellow]")

        if no_progress or not refs:
            report = await pipeline.run(refs, concurrency=config.pipeline.workers)
        else:
            progress = Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                MofNCompleteColumn(),
                TimeElapsedColumn(),
                console=console,
            )
            with progress:
                task_id = progress.add_task("Loading topics", total=len(refs))

                def advance(outcome: DocumentOutcome) -> None:
                    progress.advance(task_id)

                report = await pipeline.run(
                    refs, concurrency=config.pipeline.workers, on_outcome=advance
                )

        logger.debug(f"Connection pool after the run: {db.get_statistics()}")

    except SetupError as e:
        console.print(create_error_display(e, "Setup Error"))
        ctx.exit(1)
    finally:
        await db.close()

    console.print(create_summary_table(report.statistics.to_dict()))

    if report_path is not None:
        report_path.write_text(json.dumps(report.to_dict(), indent=2), encoding="utf-8")
        console.print(f"[dim]Report written to {report_path}[/dim]")

    if report.failures:
        console.print(create_failures_table(report.failures))
        if strict:
            ctx.exit(1)
