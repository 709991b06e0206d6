# src/rowwrap/config/loaders.py

"""Configuration loaders for environment and project files.

Pure data loading: each loader returns a plain dictionary that the core
resolver merges. No validation happens here.
"""

from __future__ import annotations

import os
from pathlib import Path
import tomllib
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping

CONFIG_TOOL_NAME = "rowwrap"
ENV_PREFIX = "ROWWRAP_"
PYPROJECT_PATH_VAR = f"{ENV_PREFIX}PYPROJECT_PATH"

# Meta/control variables that steer resolution but aren't config fields
META_ENV_FIELDS = {"pyproject_path"}


def _coerce_bool(v: str) -> bool:
    """Convert string to boolean using common conventions."""
    return v.strip().lower() in {"1", "true", "yes", "on"}


def load_env() -> Mapping[str, Any]:
    """Load configuration from ``ROWWRAP_*`` environment variables.

    Boolean fields are coerced using the ``Settings`` schema; everything else
    is passed through as a string for Pydantic to validate.
    """
    from .core import Settings  # local import to keep loaders import-light

    config: dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        field_name = key[len(ENV_PREFIX) :].lower()
        if field_name in META_ENV_FIELDS:
            continue
        info = Settings.model_fields.get(field_name)
        if info is not None and info.annotation is bool:
            config[field_name] = _coerce_bool(value)
        else:
            config[field_name] = value
    return config


def get_pyproject_path() -> Path:
    """Return the project file path, honoring ``ROWWRAP_PYPROJECT_PATH``."""
    override = os.environ.get(PYPROJECT_PATH_VAR)
    if override:
        return Path(override).expanduser()
    return Path.cwd() / "pyproject.toml"


def _read_toml(path: Path) -> dict[str, Any]:
    """Read a TOML file, returning an empty dict when it is missing or invalid."""
    if not path.exists():
        return {}
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError):
        return {}


def load_pyproject(path: Path | None = None) -> Mapping[str, Any]:
    """Load the ``[tool.rowwrap]`` table from ``pyproject.toml``."""
    data = _read_toml(path or get_pyproject_path())
    section = data.get("tool", {}).get(CONFIG_TOOL_NAME, {})
    return dict(section) if isinstance(section, dict) else {}
