"""Command-level error handling for the sbridge CLI."""

import traceback
from collections.abc import Callable
from datetime import datetime
from functools import wraps
from typing import Any

import click

from schemabridge.diagnostics import SchemaBridgeError
from schemabridge.utils.logging import logger

from .constants import ERROR_LOG_FILE, SB_DIR


def _record_crash(command: str, params: dict[str, Any], exc: BaseException) -> None:
    """Append one entry for an unexpected failure to the error log."""
    SB_DIR.mkdir(parents=True, exist_ok=True)
    shown = ", ".join(f"{key}={value!r}" for key, value in sorted(params.items()))
    with open(ERROR_LOG_FILE, "a", encoding="utf-8") as f:
        f.write(f"--- {datetime.now().isoformat(timespec='seconds')} sbridge {command} ---\n")
        f.write(f"params: {shown or '-'}\n")
        f.write("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
        f.write("\n")


def handle_exceptions(func: Callable[..., Any]) -> Callable[..., Any]:
    """Turn failures escaping a command into ClickException.

    A SchemaBridgeError is a known problem: its diagnostic becomes the
    message. Anything else is a crash and gets a traceback entry in
    .schemabridge/error.log.
    """

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        command = func.__name__
        try:
            return func(*args, **kwargs)
        except (click.ClickException, click.exceptions.Exit, click.Abort):
            raise
        except SchemaBridgeError as e:
            diag = e.diagnostic
            logger.bind(command=command, table=diag.table, column=diag.column, code=diag.code.value).error(
                diag.message
            )
            raise click.ClickException(str(diag)) from e
        except Exception as e:
            logger.bind(command=command).opt(exception=e).error("sbridge {} crashed", command)
            _record_crash(command, kwargs, e)
            raise click.ClickException(
                f"{type(e).__name__}: {e} (traceback in {ERROR_LOG_FILE})"
            ) from e

    return wrapper
