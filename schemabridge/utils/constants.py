"""Centralized constants for the schemabridge utils package."""

from pathlib import Path

# ============================================================================
# OUTPUT DIRECTORIES
# ============================================================================

# Working directory for config and logs
SB_DIR = Path("./.schemabridge")

CONFIG_FILE_NAME = "config.json"
ERROR_LOG_FILE = SB_DIR / "error.log"

# ============================================================================
# GENERATION
# ============================================================================

PACKAGE_INDEX_FILE = "__init__.py"
MODEL_FILE_SUFFIX = ".py"
