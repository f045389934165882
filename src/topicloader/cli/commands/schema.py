"""
Schema commands - create and verify the database tables
"""

from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from ...core.config_manager import ConfigurationError
from ...models.errors import SetupError
from ...storage.schema import REQUIRED_TABLES, check_schema, migrate_schema
from ..ui.display import create_error_display, create_table_counts
from ..utils.async_runner import async_command
from .common import (
    apply_database_options,
    apply_log_level,
    database_option,
    load_effective_config,
    open_database,
    postgresql_option,
)


@click.group()
def schema() -> None:
    """
    Database schema commands.

    The loader writes to six tables: topics, comments, profiles,
    attachments, polls and poll_answers.
    """
    pass


@schema.command()
@database_option
@postgresql_option
@click.pass_context
@async_command
async def migrate(
    ctx: click.Context, database: Optional[Path], postgresql: Optional[str]
) -> None:
    """
    Create any missing tables and indexes.

    Safe to run repeatedly; existing tables and rows are left untouched.
    """
    console: Console = ctx.obj["console"]

    try:
        config = await load_effective_config(ctx)
        apply_database_options(config, database, postgresql)
        apply_log_level(ctx, config)

        async with open_database(config) as db:
            await migrate_schema(db)
            await check_schema(db)

    except (ConfigurationError, SetupError) as e:
        console.print(create_error_display(e, "Schema Migration"))
        ctx.exit(1)

    console.print(f"[green]Schema is up to date in {db.location}[/green]")


@schema.command()
@database_option
@postgresql_option
@click.pass_context
@async_command
async def check(
    ctx: click.Context, database: Optional[Path], postgresql: Optional[str]
) -> None:
    """
    Verify that every table exists and show row counts.
    """
    console: Console = ctx.obj["console"]

    try:
        config = await load_effective_config(ctx)
        apply_database_options(config, database, postgresql)
        apply_log_level(ctx, config)

        async with open_database(config) as db:
            await check_schema(db)
            counts = await db.count_rows(list(REQUIRED_TABLES))

    except (ConfigurationError, SetupError) as e:
        console.print(create_error_display(e, "Schema Check"))
        ctx.exit(1)

    console.print(create_table_counts(counts, title=f"Schema of {db.location}"))
    console.print("[green]All tables present[/green]")
