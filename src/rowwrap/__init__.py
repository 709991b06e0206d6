"""rowwrap: nest subsets of flat records under a single key.

Public API:
    - MapperBuilder / WrapBuilder: declare attributes and wraps once
    - Mapper: apply the declarations to records
    - WrapSpec / AttributeSpec: immutable wrap declarations
    - apply_wraps(): the underlying pure transformer
    - resolve_settings(): layered settings (pyproject, env, overrides)
"""

from __future__ import annotations

import logging

from rowwrap.builder import MapperBuilder, WrapBuilder
from rowwrap.config import WrapSettings, resolve_settings
from rowwrap.errors import (
    ConfigurationError,
    MissingKeyError,
    ModelBuildError,
    RowwrapError,
)
from rowwrap.mapper import Mapper
from rowwrap.models import ClassModel, as_model_builder, define_model
from rowwrap.transform import apply_wraps
from rowwrap.types import DelegateMapper, ModelBuilder, Record
from rowwrap.wrap import AttributeSpec, WrapSpec

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("rowwrap")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("rowwrap").addHandler(logging.NullHandler())

__all__ = [
    "AttributeSpec",
    "ClassModel",
    "ConfigurationError",
    "DelegateMapper",
    "Mapper",
    "MapperBuilder",
    "MissingKeyError",
    "ModelBuildError",
    "ModelBuilder",
    "Record",
    "RowwrapError",
    "WrapBuilder",
    "WrapSettings",
    "WrapSpec",
    "apply_wraps",
    "as_model_builder",
    "define_model",
    "resolve_settings",
]
