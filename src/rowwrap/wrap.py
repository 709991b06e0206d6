"""Wrap declarations: frozen values built once at mapper-definition time."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from rowwrap.errors import ConfigurationError

if TYPE_CHECKING:
    from rowwrap.types import DelegateMapper, ModelBuilder

DEFAULT_PREFIX_SEPARATOR = "_"


@dataclass(frozen=True, slots=True)
class AttributeSpec:
    """One declared attribute.

    ``name`` is the key written to the output; ``source`` is the key read from
    the input when it differs (a ``from`` rename).
    """

    name: str
    source: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise ConfigurationError(
                "attribute name must be a non-empty string",
                hint="Pass attribute('email') or attribute('email', from_='mail').",
            )
        if self.source is not None and (
            not isinstance(self.source, str) or not self.source
        ):
            raise ConfigurationError(
                f"attribute {self.name!r}: rename source must be a non-empty string",
            )


@dataclass(frozen=True)
class WrapSpec:
    """Describe how a subset of a record is nested under ``target_key``."""

    target_key: str
    attributes: tuple[AttributeSpec, ...] = ()
    #: Explicit keys to extract, in order. Takes precedence over everything else.
    source_keys: tuple[str, ...] | None = None
    prefix: str | None = None
    prefix_separator: str = DEFAULT_PREFIX_SEPARATOR
    #: Local name -> source key. Inline ``AttributeSpec.source`` wins on conflict.
    renames: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({}), hash=False
    )
    #: When set, ``attributes`` and ``wraps`` are inert.
    delegate: DelegateMapper | None = None
    model: ModelBuilder | None = None
    wraps: tuple[WrapSpec, ...] = ()

    def __post_init__(self) -> None:
        """Validate shapes early for clear errors."""
        if not isinstance(self.target_key, str) or not self.target_key:
            raise ConfigurationError(
                "wrap target key must be a non-empty string",
                hint="Pass the name the nested record is stored under, e.g. wrap('contact').",
            )
        if not isinstance(self.prefix_separator, str) or not self.prefix_separator:
            raise ConfigurationError(
                f"wrap {self.target_key!r}: prefix separator must be a non-empty string",
            )
        if self.prefix is not None and (
            not isinstance(self.prefix, str) or not self.prefix
        ):
            raise ConfigurationError(
                f"wrap {self.target_key!r}: prefix must be a non-empty string",
                hint="Omit the prefix value to derive it from the target key.",
            )
        if self.source_keys is not None:
            object.__setattr__(self, "source_keys", tuple(self.source_keys))
        object.__setattr__(self, "attributes", tuple(self.attributes))
        object.__setattr__(self, "wraps", tuple(self.wraps))

        merged = dict(self.renames)
        for attr in self.attributes:
            if attr.source is not None:
                merged[attr.name] = attr.source
        object.__setattr__(self, "renames", MappingProxyType(merged))

    # --- Naming ---

    @property
    def head(self) -> str | None:
        """The full prefix including separator, or None without a prefix."""
        if self.prefix is None:
            return None
        return self.prefix + self.prefix_separator

    def source_for(self, local: str) -> str:
        """Return the input key holding the value for local name *local*."""
        renamed = self.renames.get(local)
        if renamed is not None:
            return renamed
        head = self.head
        return head + local if head is not None else local

    def local_for(self, source: str) -> str:
        """Return the output name for input key *source*.

        Explicit rename, then prefix-stripped name, then identity.
        """
        for local, renamed in self.renames.items():
            if renamed == source:
                return local
        head = self.head
        if head is not None and source.startswith(head) and len(source) > len(head):
            return source[len(head) :]
        return source

    # --- Static key discovery ---

    def local_names(self) -> tuple[str, ...]:
        """Local names this wrap pulls in without looking at a record."""
        names: list[str] = []
        if self.delegate is not None:
            names.extend(delegate_source_keys(self.delegate))
        else:
            names.extend(attr.name for attr in self.attributes)
            for child in self.wraps:
                names.extend(child.required_keys())
        return tuple(dict.fromkeys(names))

    def required_keys(self) -> tuple[str, ...]:
        """Input keys this wrap consumes that are known at definition time.

        Prefix-only wraps discover their keys per record and report nothing.
        """
        if self.source_keys is not None:
            return self.source_keys
        return tuple(dict.fromkeys(self.source_for(n) for n in self.local_names()))


def delegate_source_keys(delegate: DelegateMapper) -> tuple[str, ...]:
    """Return the keys a delegate declares it consumes, if it declares any."""
    keys = getattr(delegate, "source_keys", None)
    if keys is None or isinstance(keys, str):
        return ()
    return tuple(keys)


__all__ = [
    "DEFAULT_PREFIX_SEPARATOR",
    "AttributeSpec",
    "WrapSpec",
    "delegate_source_keys",
]
