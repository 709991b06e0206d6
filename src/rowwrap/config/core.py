# src/rowwrap/config/core.py

"""Settings schema and layered resolution.

- Single source of truth for setting fields, types and defaults (Settings)
- Immutable runtime payload handed to builders and mappers (WrapSettings)
- Pure layer merging with origin tracking (SourceMap)

Precedence: defaults < pyproject ``[tool.rowwrap]`` < ``ROWWRAP_*`` env < overrides.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from functools import cache
from typing import TYPE_CHECKING, Any, Literal, overload
import warnings

from pydantic import BaseModel, Field, ValidationError, field_validator

from rowwrap.errors import ConfigurationError
from rowwrap.wrap import DEFAULT_PREFIX_SEPARATOR

if TYPE_CHECKING:
    from collections.abc import Mapping

MissingKeyPolicy = Literal["skip", "error"]
DuplicateTargetPolicy = Literal["error", "last_wins"]
OverlapPolicy = Literal["error", "allow"]

# --- Schema (Pydantic wall) ---


class Settings(BaseModel):
    """Pydantic schema for rowwrap settings."""

    prefix_separator: str = Field(default=DEFAULT_PREFIX_SEPARATOR, min_length=1)
    missing_keys: MissingKeyPolicy = Field(default="skip")
    duplicate_targets: DuplicateTargetPolicy = Field(default="error")
    overlapping_sources: OverlapPolicy = Field(default="error")
    strict_delegates: bool = Field(default=False)

    model_config = {"extra": "allow"}

    @field_validator(
        "missing_keys", "duplicate_targets", "overlapping_sources", mode="before"
    )
    @classmethod
    def normalize_policy(cls, v: Any) -> Any:
        """Accept policy names case-insensitively and with dashes."""
        if isinstance(v, str):
            return v.strip().lower().replace("-", "_")
        return v


@cache
def _default_settings() -> dict[str, Any]:
    return Settings().model_dump()


# --- Immutable runtime payload ---


@dataclass(frozen=True)
class WrapSettings:
    """Resolved, immutable settings consumed by builders and the transformer."""

    prefix_separator: str = DEFAULT_PREFIX_SEPARATOR
    missing_keys: MissingKeyPolicy = "skip"
    duplicate_targets: DuplicateTargetPolicy = "error"
    overlapping_sources: OverlapPolicy = "error"
    strict_delegates: bool = False


# --- Audit types ---


class Origin(str, Enum):
    """Source origin for a setting value."""

    DEFAULT = "default"
    PROJECT = "project"
    ENV = "env"
    OVERRIDES = "overrides"


@dataclass(frozen=True)
class FieldOrigin:
    """Where a setting value came from."""

    origin: Origin
    env_key: str | None = None  # e.g., "ROWWRAP_MISSING_KEYS"
    file: str | None = None


SourceMap = dict[str, FieldOrigin]


# --- Public resolution API ---


@overload
def resolve_settings(
    overrides: Mapping[str, Any] | None = ...,
    *,
    explain: Literal[True],
) -> tuple[WrapSettings, SourceMap]: ...


@overload
def resolve_settings(
    overrides: Mapping[str, Any] | None = ...,
    *,
    explain: Literal[False] = ...,
) -> WrapSettings: ...


def resolve_settings(
    overrides: Mapping[str, Any] | None = None,
    *,
    explain: bool = False,
) -> WrapSettings | tuple[WrapSettings, SourceMap]:
    """Resolve settings from all layers into a WrapSettings.

    Args:
        overrides: Programmatic values; highest precedence.
        explain: If True, also return the origin of every field.

    Raises:
        ConfigurationError: If the merged values fail validation.
    """
    _try_load_dotenv()

    from .loaders import get_pyproject_path, load_env, load_pyproject

    merged, sources = _resolve_layers(
        overrides=overrides or {},
        env=load_env(),
        project=load_pyproject(),
        project_file=str(get_pyproject_path()),
    )

    try:
        settings = Settings.model_validate(merged)
    except ValidationError as e:
        err = e.errors()[0]
        loc = ".".join(str(part) for part in err.get("loc", ()))
        msg = err.get("msg", "invalid value")
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, ") :]
        raise ConfigurationError(
            f"Settings validation failed: {loc}: {msg}",
            hint="Check [tool.rowwrap] in pyproject.toml and ROWWRAP_* variables.",
        ) from e

    frozen = _freeze(settings, merged)
    return (frozen, sources) if explain else frozen


# --- Internal helpers ---

_DOTENV_LOADED: bool = False


def _try_load_dotenv() -> None:
    """Load a .env file once per process so ROWWRAP_* values can live there."""
    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return
    from dotenv import load_dotenv

    load_dotenv()
    _DOTENV_LOADED = True


def _freeze(settings: Settings, merged: Mapping[str, Any]) -> WrapSettings:
    known_fields = set(Settings.model_fields.keys())
    extra = sorted(k for k in merged if k not in known_fields)
    for name in extra:
        warnings.warn(
            f"Configuration: unknown rowwrap setting {name!r} ignored",
            UserWarning,
            stacklevel=3,
        )
    return WrapSettings(
        prefix_separator=settings.prefix_separator,
        missing_keys=settings.missing_keys,
        duplicate_targets=settings.duplicate_targets,
        overlapping_sources=settings.overlapping_sources,
        strict_delegates=settings.strict_delegates,
    )


def _resolve_layers(
    *,
    overrides: Mapping[str, Any],
    env: Mapping[str, Any],
    project: Mapping[str, Any],
    project_file: str | None = None,
) -> tuple[dict[str, Any], SourceMap]:
    """Merge layers with last-wins precedence while recording origins."""
    from .loaders import ENV_PREFIX

    out: dict[str, Any] = {}
    src: SourceMap = {}

    for k, v in _default_settings().items():
        out[k] = v
        src[k] = FieldOrigin(origin=Origin.DEFAULT)

    for k, v in project.items():
        out[k] = v
        src[k] = FieldOrigin(origin=Origin.PROJECT, file=project_file)
    for k, v in env.items():
        out[k] = v
        src[k] = FieldOrigin(origin=Origin.ENV, env_key=f"{ENV_PREFIX}{k.upper()}")
    for k, v in overrides.items():
        out[k] = v
        src[k] = FieldOrigin(origin=Origin.OVERRIDES)

    return out, src


# --- Audit helpers ---


def _origin_label(where: FieldOrigin) -> str:
    match where.origin:
        case Origin.ENV:
            return f"env:{where.env_key}"
        case Origin.PROJECT:
            return f"file:{where.file or 'pyproject.toml'}"
        case _:
            return str(where.origin.value)


def audit_lines(sources: SourceMap) -> list[str]:
    """Human-readable origin line per known setting."""
    return [
        f"{name}: {_origin_label(sources[name])}"
        for name in Settings.model_fields
        if name in sources
    ]


def to_dict(settings: WrapSettings) -> dict[str, Any]:
    """Plain dict view for logging or printing."""
    return asdict(settings)


# --- Minimal CLI entrypoint ---


def main(argv: list[str] | None = None) -> int:
    import argparse
    import json
    import sys

    parser = argparse.ArgumentParser("rowwrap-config")
    sub = parser.add_subparsers(dest="cmd", required=True)
    sub.add_parser("show")
    sub.add_parser("audit")
    args = parser.parse_args(argv)

    try:
        settings, sources = resolve_settings(explain=True)
    except ConfigurationError as e:
        sys.stderr.write(f"error: {e}\n")
        if e.hint:
            sys.stderr.write(f"hint: {e.hint}\n")
        return 1

    if args.cmd == "show":
        sys.stdout.write(json.dumps(to_dict(settings), indent=2) + "\n")
    else:
        sys.stdout.write("\n".join(audit_lines(sources)) + "\n")
    return 0
