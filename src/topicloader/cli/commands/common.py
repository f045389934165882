"""
Shared helpers for commands that need the effective configuration
"""

import logging
from pathlib import Path
from typing import Optional

import click

from ...core.config_manager import ConfigurationManager
from ...models.config_models import LoaderConfig
from ...storage.backends import Database, create_database

database_option = click.option(
    "--database",
    "-d",
    type=click.Path(path_type=Path),
    help="SQLite database file (overrides configuration)",
)

postgresql_option = click.option(
    "--postgresql",
    metavar="DSN",
    help="PostgreSQL DSN, used instead of the SQLite file",
)


async def load_effective_config(ctx: click.Context) -> LoaderConfig:
    """Load configuration from the --config path, the environment and defaults."""
    config_manager = ConfigurationManager()
    config = await config_manager.load_config(ctx.obj.get("config_path"))
    ctx.obj["config_manager"] = config_manager
    return config


def apply_log_level(ctx: click.Context, config: LoaderConfig) -> None:
    # --verbose always wins over the configured level
    if not ctx.obj.get("verbose"):
        logging.getLogger("topicloader").setLevel(config.logging.level)


def apply_database_options(
    config: LoaderConfig, database: Optional[Path], postgresql: Optional[str]
) -> None:
    """
    Point the configuration at the database chosen on the command line.

    An explicit --database selects SQLite even when a DSN is configured;
    --postgresql wins over both.
    """
    if database is not None:
        config.database.path = str(database)
        config.database.postgresql = None
    if postgresql:
        config.database.postgresql = postgresql


def open_database(config: LoaderConfig) -> Database:
    return create_database(config.database)
