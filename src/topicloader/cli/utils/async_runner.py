"""
Running coroutine commands under click
"""

import asyncio
import logging
from functools import wraps
from typing import Any, Awaitable, Callable, TypeVar

import click
from rich.console import Console

from ..ui.display import create_error_display

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def _command_console() -> Console:
    # Reuse the console configured by the group (it honours --no-color)
    ctx = click.get_current_context(silent=True)
    if ctx is not None and isinstance(ctx.obj, dict) and "console" in ctx.obj:
        return ctx.obj["console"]
    return Console()


def async_command(f: F) -> Callable[..., Any]:
    """
    Run a coroutine command to completion with asyncio.run.

    Exits raised through ``ctx.exit`` and click's own usage errors pass
    through untouched. An interrupt exits with status 130; any other error
    the command did not handle is shown in the error panel and exits with
    status 1.
    """

    @wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return asyncio.run(f(*args, **kwargs))  # type: ignore
        except (click.exceptions.Exit, click.ClickException, click.Abort):
            raise
        except KeyboardInterrupt:
            _command_console().print("\n[yellow]Interrupted, partial results were kept[/yellow]")
            raise click.exceptions.Exit(130)
        except Exception as e:
            logger.debug(f"Command {f.__name__} failed", exc_info=True)
            _command_console().print(create_error_display(e, "Unexpected Error"))
            raise click.exceptions.Exit(1)

    return wrapper
