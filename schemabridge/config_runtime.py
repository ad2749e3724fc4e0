"""Runtime configuration for schemabridge - centralized configuration management."""

import copy
import json
import os
from pathlib import Path
from typing import Any

from schemabridge.schema.soft_delete import SOFT_DELETE_FLAG_NAMES, SOFT_DELETE_TIMESTAMP_NAMES
from schemabridge.utils.constants import CONFIG_FILE_NAME, SB_DIR
from schemabridge.utils.logging import logger

DEFAULTS = {
    "generate": {
        "output_dir": "./models",
        "include_serialization": True,
        "include_crud": True,
        "overwrite": False,
        "max_workers": 1,
    },
    "sql": {
        "dialect": "mysql",
    },
    "soft_delete": {
        "flag_names": list(SOFT_DELETE_FLAG_NAMES),
        "timestamp_names": list(SOFT_DELETE_TIMESTAMP_NAMES),
        "overrides": {},
    },
}

# Mappings cannot be expressed as a single environment variable
_FILE_ONLY_KEYS = {("soft_delete", "overrides")}

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off"}


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_STRINGS:
        return True
    if lowered in _FALSE_STRINGS:
        return False
    raise ValueError(f"expected a boolean, got '{value}'")


def _matches_default_type(value: Any, default: Any) -> bool:
    # bool is an int subclass; keep the two apart
    if isinstance(default, bool) or isinstance(value, bool):
        return isinstance(value, bool) and isinstance(default, bool)
    if isinstance(default, dict):
        return isinstance(value, dict) and all(
            isinstance(k, str) and isinstance(v, str) for k, v in value.items()
        )
    if isinstance(default, list):
        return isinstance(value, list) and all(isinstance(v, str) for v in value)
    return isinstance(value, type(default))


def load_runtime_config(root: str = ".") -> dict[str, Any]:
    """
    Load runtime configuration from .schemabridge/config.json and environment variables.

    Config priority (highest to lowest):
    1. Environment variables (SCHEMABRIDGE_<SECTION>_<KEY>)
    2. .schemabridge/config.json file
    3. Built-in defaults

    Args:
        root: Root directory to look for config file

    Returns:
        Configuration dictionary with merged values
    """
    cfg = copy.deepcopy(DEFAULTS)

    path = Path(root) / SB_DIR.name / CONFIG_FILE_NAME
    try:
        if path.exists():
            with open(path, encoding="utf-8") as f:
                user = json.load(f)

            if isinstance(user, dict):
                for section in cfg:
                    if section in user and isinstance(user[section], dict):
                        for key, value in user[section].items():
                            if key in cfg[section] and _matches_default_type(value, cfg[section][key]):
                                cfg[section][key] = value
                            else:
                                logger.warning(
                                    "Ignoring config key {section}.{key} in {path}",
                                    section=section,
                                    key=key,
                                    path=str(path),
                                )
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Could not load config file from {path}: {err}", path=str(path), err=str(e))
        logger.info("Continuing with default configuration")

    for section in cfg:
        for key in cfg[section]:
            if (section, key) in _FILE_ONLY_KEYS:
                continue
            env_var = f"SCHEMABRIDGE_{section.upper()}_{key.upper()}"
            if env_var not in os.environ:
                continue
            value = os.environ[env_var]
            default_value = cfg[section][key]
            try:
                if isinstance(default_value, bool):
                    cfg[section][key] = _parse_bool(value)
                elif isinstance(default_value, int):
                    cfg[section][key] = int(value)
                elif isinstance(default_value, list):
                    cfg[section][key] = [v.strip() for v in value.split(",") if v.strip()]
                else:
                    cfg[section][key] = value
            except ValueError as e:
                logger.warning(
                    "Invalid value for environment variable {var}: '{value}' - {err}",
                    var=env_var,
                    value=value,
                    err=str(e),
                )
                logger.info("Using default value: {default}", default=default_value)

    return cfg


def soft_delete_candidates(cfg: dict[str, Any]) -> tuple[str, ...]:
    """Ordered candidate names: flag names first, then timestamp names."""
    section = cfg["soft_delete"]
    return tuple(section["flag_names"]) + tuple(section["timestamp_names"])
