"""Model builders: turn a nested record into a constructed object."""

from __future__ import annotations

from dataclasses import make_dataclass
import keyword
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from rowwrap.errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping

    from rowwrap.types import ModelBuilder


class ClassModel:
    """Build instances of a class (or any factory) from nested attributes.

    Pydantic models go through ``model_validate`` so field validation and
    coercion apply; everything else is called with the attributes as keyword
    arguments.
    """

    def __init__(self, factory: Callable[..., Any]) -> None:
        if not callable(factory):
            raise ConfigurationError(
                f"model factory must be callable, got {type(factory).__name__}",
                hint="Pass a class, a pydantic model or a function taking keyword arguments.",
            )
        self.factory = factory

    def construct(self, record: Mapping[str, Any]) -> Any:
        if _is_pydantic_model(self.factory):
            return self.factory.model_validate(dict(record))
        return self.factory(**record)

    def __repr__(self) -> str:
        name = getattr(self.factory, "__name__", repr(self.factory))
        return f"ClassModel({name})"


def define_model(name: str, fields: Iterable[str]) -> ClassModel:
    """Generate a frozen dataclass called *name* with one field per attribute.

    Every field defaults to ``None`` so records with skipped keys still build.
    """
    if not isinstance(name, str) or not name.isidentifier():
        raise ConfigurationError(
            f"model name must be a valid identifier, got {name!r}",
        )
    names = list(dict.fromkeys(fields))
    if not names:
        raise ConfigurationError(
            f"model {name!r} needs at least one attribute",
            hint="Declare the wrap's attributes before asking for a generated model.",
        )
    for field_name in names:
        if not field_name.isidentifier() or keyword.iskeyword(field_name):
            raise ConfigurationError(
                f"model {name!r}: attribute {field_name!r} is not a valid field name",
                hint="Rename the attribute with attribute(<name>, from_=<source>).",
            )
    cls = make_dataclass(
        name,
        [(field_name, Any, None) for field_name in names],
        frozen=True,
    )
    return ClassModel(cls)


def as_model_builder(obj: Any) -> ModelBuilder:
    """Coerce *obj* into something with ``construct(record)``."""
    if _is_pydantic_model(obj):
        return ClassModel(obj)
    if not isinstance(obj, type) and callable(getattr(obj, "construct", None)):
        return obj
    if callable(obj):
        return ClassModel(obj)
    raise ConfigurationError(
        f"cannot build models with {type(obj).__name__}",
        hint="Pass a class, a pydantic model, a factory function or a ModelBuilder.",
    )


def _is_pydantic_model(obj: Any) -> bool:
    return isinstance(obj, type) and issubclass(obj, BaseModel)


__all__ = ["ClassModel", "as_model_builder", "define_model"]
