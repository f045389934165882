"""
Configuration management commands
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import click
from rich.console import Console

from ...core.config_manager import ConfigurationError, ConfigurationManager
from ...models.config_models import LoaderConfig
from ...storage.postgres import redact_dsn
from ..ui.display import create_config_table, create_error_display
from ..utils.async_runner import async_command
from .common import load_effective_config

ENV_SOURCES = {
    "database.path": "TOPICLOADER_DATABASE",
    "database.postgresql": "TOPICLOADER_POSTGRESQL",
    "source.folder": "TOPICLOADER_FOLDER",
    "pipeline.workers": "TOPICLOADER_WORKERS",
    "logging.level": "TOPICLOADER_LOG_LEVEL",
}


@click.group()
def config() -> None:
    """
    Configuration management commands.

    Settings are read from topicloader.yaml (or the file given with
    --config / TOPICLOADER_CONFIG_PATH), then overridden by environment
    variables and finally by command line options.
    """
    pass


@config.command()
@click.pass_context
@async_command
async def show(ctx: click.Context) -> None:
    """
    Display current configuration with sources.

    Shows all configuration values including those from:
    - Configuration file
    - Environment variables
    - Default values
    """
    console: Console = ctx.obj["console"]

    try:
        loaded = await load_effective_config(ctx)
    except ConfigurationError as e:
        console.print(create_error_display(e, "Configuration Error"))
        ctx.exit(1)

    config_manager: ConfigurationManager = ctx.obj["config_manager"]
    config_file_path = config_manager.config_path
    file_exists = bool(config_file_path and config_file_path.exists())

    table = create_config_table(
        _build_config_data(loaded, file_exists), "topicloader Configuration"
    )
    console.print(table)

    console.print(f"\n[dim]Configuration file: {config_file_path}[/dim]")
    if not file_exists:
        console.print(
            "[yellow]Configuration file does not exist. Run 'topicloader config init' to create one.[/yellow]"
        )


@config.command()
@click.option(
    "--path",
    "config_path",
    type=click.Path(path_type=Path),
    help="Where to write the file (default: ./topicloader.yaml)",
)
@click.option("--force", is_flag=True, help="Overwrite an existing file")
@click.pass_context
@async_command
async def init(ctx: click.Context, config_path: Optional[Path], force: bool) -> None:
    """
    Write a commented configuration file with default values.
    """
    console: Console = ctx.obj["console"]
    config_manager = ConfigurationManager()

    target = config_path or ctx.obj.get("config_path") or config_manager.default_config_path()

    try:
        if force:
            await config_manager.save_config(LoaderConfig(), target)
        else:
            existed = target.exists()
            target = await config_manager.generate_default_config(target)
            if existed:
                console.print(
                    f"[yellow]Configuration file already exists: {target}[/yellow]\n"
                    "Use --force to overwrite it."
                )
                ctx.exit(1)

    except ConfigurationError as e:
        console.print(create_error_display(e, "Configuration Error"))
        ctx.exit(1)

    console.print(f"[green]Configuration written to {target}[/green]")


def _build_config_data(loaded: LoaderConfig, file_exists: bool) -> Dict[str, Any]:
    file_source = "config file" if file_exists else "default"

    values = {
        "database.path": loaded.database.path,
        "database.postgresql": (
            redact_dsn(loaded.database.postgresql) if loaded.database.postgresql else "not set"
        ),
        "database.timeout": loaded.database.timeout,
        "database.max_connections": loaded.database.max_connections,
        "database.wal_mode": loaded.database.wal_mode,
        "source.folder": loaded.source.folder,
        "source.patterns": ", ".join(loaded.source.patterns),
        "pipeline.workers": loaded.pipeline.workers,
        "pipeline.serialize_identities": loaded.pipeline.serialize_identities,
        "pipeline.migrate": loaded.pipeline.migrate,
        "logging.level": loaded.logging.level,
    }

    config_data = {}
    for key, value in values.items():
        env_var = ENV_SOURCES.get(key)
        if env_var and os.getenv(env_var):
            source = f"environment ({env_var})"
        else:
            source = file_source
        config_data[key] = {"value": str(value), "source": source}

    return config_data
