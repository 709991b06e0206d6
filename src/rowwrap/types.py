"""Record alias and the collaborator protocols used by wraps."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping

Record = dict[str, Any]


@runtime_checkable
class DelegateMapper(Protocol):
    """Anything that turns one record into another.

    Implementations may also expose a ``source_keys`` sequence naming the keys
    they consume; a wrap without explicit sources extracts exactly those.
    """

    def transform(self, record: Mapping[str, Any]) -> Record:
        """Return a new record derived from *record*."""
        ...


@runtime_checkable
class ModelBuilder(Protocol):
    """Factory that turns a nested record into a richer object."""

    def construct(self, record: Mapping[str, Any]) -> Any:
        """Build an object from the attributes in *record*."""
        ...


__all__ = ["DelegateMapper", "ModelBuilder", "Record"]
