"""Mapper: top-level attributes plus wraps, applied to one record at a time."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from rowwrap.config import resolve_settings
from rowwrap.transform import apply_wraps

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from rowwrap.config import WrapSettings
    from rowwrap.types import Record
    from rowwrap.wrap import AttributeSpec, WrapSpec

logger = logging.getLogger(__name__)


class Mapper:
    """Reshape records according to a fixed set of declarations.

    A mapper owns its top-level attribute declarations, its wraps and the
    ``reject_keys`` flag. It is immutable after construction and can be shared
    between threads; it also satisfies ``DelegateMapper`` so it can be used as
    another wrap's delegate.
    Without explicit *settings* the layered configuration is resolved once,
    here.

    Example:
        mapper = Mapper(
            attributes=[AttributeSpec("id"), AttributeSpec("name")],
            wraps=[WrapSpec("contacts", prefix="contact",
                            attributes=(AttributeSpec("email"),))],
            reject_keys=True,
        )
        mapper.transform({"id": 1, "name": "Joe", "contact_email": "a@b.com"})
    """

    def __init__(
        self,
        attributes: Iterable[AttributeSpec] = (),
        wraps: Iterable[WrapSpec] = (),
        *,
        reject_keys: bool = False,
        settings: WrapSettings | None = None,
    ) -> None:
        self.attributes: tuple[AttributeSpec, ...] = tuple(attributes)
        self.wraps: tuple[WrapSpec, ...] = tuple(wraps)
        self.reject_keys = reject_keys
        self.settings = settings if settings is not None else resolve_settings()

        targets = {spec.target_key for spec in self.wraps}
        self._declared = tuple(attr.source or attr.name for attr in self.attributes)
        self._renames = {
            attr.source: attr.name
            for attr in self.attributes
            if attr.source is not None and attr.source not in targets
        }

    @property
    def source_keys(self) -> tuple[str, ...]:
        """Input keys this mapper consumes, as far as they are known statically."""
        keys = list(self._declared)
        for spec in self.wraps:
            keys.extend(spec.required_keys())
        return tuple(dict.fromkeys(keys))

    def transform(self, record: Mapping[str, Any]) -> Record:
        """Return a reshaped copy of *record*."""
        out = apply_wraps(
            record,
            self.wraps,
            reject_unlisted=self.reject_keys,
            declared=self._declared,
            settings=self.settings,
        )
        if self._renames:
            out = {self._renames.get(k, k): v for k, v in out.items()}
        return out

    def transform_many(self, records: Iterable[Mapping[str, Any]]) -> list[Record]:
        """Transform each record in *records*, preserving order."""
        results = [self.transform(record) for record in records]
        logger.debug("Mapped %d record(s) through %r", len(results), self)
        return results

    def __repr__(self) -> str:
        return (
            f"Mapper(attributes={[a.name for a in self.attributes]!r}, "
            f"wraps={[w.target_key for w in self.wraps]!r}, "
            f"reject_keys={self.reject_keys})"
        )


__all__ = ["Mapper"]
