# src/rowwrap/config/__init__.py

"""Settings resolution for rowwrap.

Resolve once at definition time, freeze, then hand the frozen
``WrapSettings`` to builders and mappers.
"""

from .core import (
    FieldOrigin,
    Origin,
    Settings,
    SourceMap,
    WrapSettings,
    audit_lines,
    resolve_settings,
    to_dict,
)
from .loaders import load_env, load_pyproject

__all__ = [
    "FieldOrigin",
    "Origin",
    "Settings",
    "SourceMap",
    "WrapSettings",
    "audit_lines",
    "load_env",
    "load_pyproject",
    "resolve_settings",
    "to_dict",
]
