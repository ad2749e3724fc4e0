"""Loguru setup shared by every schemabridge module.

Usage:
    from schemabridge.utils.logging import logger
    logger.info("Message")
    logger.bind(table="user", code="MissingPrimaryKey").warning("No primary key")

Log output goes to stderr so generated models and DDL on stdout stay
clean. Records bound with diagnostic fields (table, column, code) show
them in both the human and the JSON format.

Environment Variables:
    SCHEMABRIDGE_LOG_LEVEL: DEBUG|INFO|WARNING|ERROR (default: INFO)
    SCHEMABRIDGE_LOG_JSON: 0|1 (default: 0, human-readable)
    SCHEMABRIDGE_LOG_FILE: path of an extra JSON-lines log (optional)
"""

import json
import os
import sys
from pathlib import Path

from loguru import logger


def json_format(record) -> str:
    """One JSON object per record, carrying any bound diagnostic fields."""
    entry = {
        "time": record["time"].isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "source": f"{record['name']}:{record['line']}",
    }
    for key, value in record["extra"].items():
        if key != "json" and value is not None:
            entry[key] = value
    if record["exception"]:
        exc_type, exc_value, _ = record["exception"]
        entry["error"] = {
            "type": exc_type.__name__ if exc_type else "Error",
            "message": str(exc_value) if exc_value else "",
        }
    record["extra"]["json"] = json.dumps(entry, default=str, ensure_ascii=False)
    return "{extra[json]}\n"


def human_format(record) -> str:
    """Colour-tagged line; diagnostic records lead with code and location."""
    extra = record["extra"]
    fmt = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    if extra.get("code"):
        fmt += "<magenta>[{extra[code]}]</magenta> "
    if extra.get("table") and extra.get("column"):
        fmt += "<cyan>{extra[table]}.{extra[column]}</cyan>: "
    elif extra.get("table"):
        fmt += "<cyan>{extra[table]}</cyan>: "
    else:
        fmt += "<cyan>{name}:{function}:{line}</cyan> - "
    return fmt + "<level>{message}</level>\n{exception}"


def setup_logging(level: str | None = None, json_mode: bool | None = None, log_file: str | None = None) -> None:
    """Replace all handlers; unset arguments fall back to the environment."""
    if level is None:
        level = os.environ.get("SCHEMABRIDGE_LOG_LEVEL", "INFO")
    if json_mode is None:
        json_mode = os.environ.get("SCHEMABRIDGE_LOG_JSON", "0") == "1"
    if log_file is None:
        log_file = os.environ.get("SCHEMABRIDGE_LOG_FILE")

    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format=json_format if json_mode else human_format,
        colorize=False if json_mode else None,
    )
    if log_file:
        logger.add(log_file, level="DEBUG", format=json_format, encoding="utf-8")


def configure_file_logging(log_dir: Path, level: str = "DEBUG") -> None:
    """Add a rotating human-readable log under log_dir (sbridge --log-dir)."""
    log_dir.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_dir / "schemabridge.log",
        rotation="10 MB",
        retention="7 days",
        level=level,
        format=human_format,
        colorize=False,
        encoding="utf-8",
    )


logger.level("DEBUG", color="<blue>")
logger.level("WARNING", color="<yellow>")
logger.level("ERROR", color="<red>")

setup_logging()


__all__ = [
    "configure_file_logging",
    "human_format",
    "json_format",
    "logger",
    "setup_logging",
]
