"""schemabridge utilities package."""

from .constants import ERROR_LOG_FILE, SB_DIR
from .error_handler import handle_exceptions
from .logging import logger

__all__ = [
    "SB_DIR",
    "ERROR_LOG_FILE",
    "handle_exceptions",
    "logger",
]
