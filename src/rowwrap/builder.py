"""Declarative builders for mappers and wraps.

Builders are the setup-time surface: they collect declarations, resolve
defaults (prefix, separator, generated models) and validate the result once,
producing immutable `WrapSpec` trees and a `Mapper`.

Example:
    builder = MapperBuilder(reject_keys=True)
    builder.attribute("id")
    with builder.wrap("contacts", prefix="contact") as contacts:
        contacts.attribute("email")
        contacts.attribute("skype")
    mapper = builder.build()
"""

from __future__ import annotations

from collections import Counter
from dataclasses import replace
import logging
from typing import TYPE_CHECKING, Any, Literal

from rowwrap.config import WrapSettings, resolve_settings
from rowwrap.errors import ConfigurationError
from rowwrap.mapper import Mapper
from rowwrap.models import as_model_builder, define_model
from rowwrap.wrap import AttributeSpec, WrapSpec

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence
    from types import TracebackType

    from rowwrap.types import DelegateMapper, ModelBuilder

logger = logging.getLogger(__name__)

AttributeDecl = str | AttributeSpec | tuple[str, str]


def _attribute(decl: AttributeDecl) -> AttributeSpec:
    """Normalize ``"name"``, ``("name", "source")`` or an AttributeSpec."""
    if isinstance(decl, AttributeSpec):
        return decl
    if isinstance(decl, tuple) and len(decl) == 2:
        return AttributeSpec(decl[0], decl[1])
    if isinstance(decl, str):
        return AttributeSpec(decl)
    raise ConfigurationError(
        f"cannot declare an attribute from {decl!r}",
        hint="Use 'name', ('name', 'source') or AttributeSpec(...).",
    )


def _camel(name: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in name.split("_") if part)


class WrapBuilder:
    """Collect the declarations of one wrap; usable as a context manager."""

    def __init__(
        self,
        target_key: str,
        *,
        settings: WrapSettings,
        attributes: Iterable[AttributeDecl] | None = None,
        sources: Iterable[str] | None = None,
        prefix: str | Literal[True] | None = None,
        prefix_separator: str | None = None,
        mapper: DelegateMapper | None = None,
        model: Any = None,
    ) -> None:
        if not isinstance(target_key, str) or not target_key:
            raise ConfigurationError(
                "wrap target key must be a non-empty string",
                hint="Pass the name the nested record is stored under, e.g. wrap('contact').",
            )
        self.target_key = target_key
        self._settings = settings
        self._attributes: list[AttributeSpec] = []
        self._sources: tuple[str, ...] | None = None
        self._prefix: str | None = None
        self._separator: str | None = prefix_separator
        self._delegate: DelegateMapper | None = None
        self._model: ModelBuilder | None = None
        self._model_name: str | None = None
        self._model_fields: tuple[str, ...] | None = None
        self._children: list[WrapBuilder] = []

        for decl in attributes or ():
            self._attributes.append(_attribute(decl))
        if sources is not None:
            self.sources(*sources)
        if prefix is True:
            self.prefix()
        elif prefix is not None:
            self.prefix(prefix)
        if mapper is not None:
            self.mapper(mapper)
        if model is not None:
            self.model(model)

    # --- Declarations ---

    def attribute(self, name: str, *, from_: str | None = None) -> WrapBuilder:
        """Declare a nested attribute, optionally read from another key."""
        self._attributes.append(AttributeSpec(name, from_))
        return self

    def sources(self, *keys: str) -> WrapBuilder:
        """Extract exactly *keys*, in this order."""
        for key in keys:
            if not isinstance(key, str) or not key:
                raise ConfigurationError(
                    f"wrap {self.target_key!r}: source keys must be non-empty strings",
                )
        self._sources = tuple(keys)
        return self

    def prefix(
        self, value: str | None = None, *, separator: str | None = None
    ) -> WrapBuilder:
        """Strip ``<value><separator>`` from source keys.

        Without *value* the target key is the prefix.
        """
        self._prefix = value if value is not None else self.target_key
        if separator is not None:
            self._separator = separator
        return self

    def mapper(self, delegate: DelegateMapper) -> WrapBuilder:
        """Hand the extracted sub-record to *delegate* instead of inline rules."""
        if not callable(getattr(delegate, "transform", None)):
            raise ConfigurationError(
                f"wrap {self.target_key!r}: mapper must provide transform(record)",
                hint="Pass a Mapper or any object with a transform(record) method.",
            )
        self._delegate = delegate
        return self

    def model(
        self,
        target: Any = None,
        *,
        name: str | None = None,
        fields: Iterable[str] | None = None,
    ) -> WrapBuilder:
        """Construct an object from the nested record.

        *target* may be a class, a pydantic model, a factory or a
        ModelBuilder. Without *target* a dataclass called *name* (default:
        the camel-cased target key) is generated from the wrap's attributes.
        """
        if target is not None:
            self._model = as_model_builder(target)
            self._model_name = None
        else:
            self._model = None
            self._model_name = name or _camel(self.target_key)
            self._model_fields = tuple(fields) if fields is not None else None
        return self

    def wrap(self, target_key: str, **kwargs: Any) -> WrapBuilder:
        """Declare a nested wrap applied to this wrap's sub-record."""
        child = WrapBuilder(target_key, settings=self._settings, **kwargs)
        self._children.append(child)
        return child

    def __enter__(self) -> WrapBuilder:
        return self

    def __exit__(
        self,
        _: type[BaseException] | None,
        __: BaseException | None,
        ___: TracebackType | None,
    ) -> Literal[False]:
        return False

    # --- Build ---

    def build(self) -> WrapSpec:
        """Validate declarations and return the immutable WrapSpec."""
        settings = self._settings
        if self._delegate is not None and (self._attributes or self._children):
            msg = (
                f"wrap {self.target_key!r}: inline attributes and nested wraps "
                "are ignored when a mapper is set"
            )
            if settings.strict_delegates:
                raise ConfigurationError(
                    msg, hint="Remove the inline declarations or the mapper."
                )
            logger.warning("%s", msg)

        children = tuple(child.build() for child in self._children)
        if self._delegate is None:
            validate_siblings(children, settings, scope=f"wrap {self.target_key!r}")

        spec = WrapSpec(
            target_key=self.target_key,
            attributes=tuple(self._attributes),
            source_keys=self._sources,
            prefix=self._prefix,
            prefix_separator=self._separator or settings.prefix_separator,
            delegate=self._delegate,
            wraps=children,
        )
        model = self._model
        if self._model_name is not None:
            fields = self._model_fields
            if fields is None:
                fields = _nested_field_names(spec)
            model = define_model(self._model_name, fields)
        return spec if model is None else replace(spec, model=model)


def _nested_field_names(spec: WrapSpec) -> tuple[str, ...]:
    """Names the nested record will carry once nested wraps have run."""
    if spec.delegate is not None:
        raise ConfigurationError(
            f"wrap {spec.target_key!r}: cannot derive model fields from a mapper",
            hint="Pass fields=[...] or a model class.",
        )
    if spec.source_keys is not None:
        own = [spec.local_for(key) for key in spec.source_keys]
    else:
        own = [attr.name for attr in spec.attributes]
    consumed = {key for child in spec.wraps for key in child.required_keys()}
    names = [name for name in own if name not in consumed]
    names.extend(child.target_key for child in spec.wraps)
    return tuple(dict.fromkeys(names))


def validate_siblings(
    specs: Sequence[WrapSpec], settings: WrapSettings, *, scope: str = "mapper"
) -> None:
    """Check sibling wraps for duplicate targets and overlapping sources.

    A wrap reading an earlier sibling's target key counts as an overlap.
    """
    counts = Counter(spec.target_key for spec in specs)
    duplicates = sorted(key for key, n in counts.items() if n > 1)
    if duplicates:
        msg = f"{scope}: duplicate wrap target key(s) {duplicates}"
        if settings.duplicate_targets == "error":
            raise ConfigurationError(
                msg, hint="Set duplicate_targets='last_wins' to keep the last one."
            )
        logger.warning("%s; the last declaration wins", msg)

    if settings.overlapping_sources == "allow":
        return
    owner: dict[str, str] = {}
    targets: set[str] = set()
    for spec in specs:
        for key in spec.required_keys():
            if key in targets:
                raise ConfigurationError(
                    f"{scope}: wrap {spec.target_key!r} reads {key!r}, "
                    "the target key of an earlier wrap",
                    hint="Rename the target or set overlapping_sources='allow'.",
                )
            first = owner.setdefault(key, spec.target_key)
            if first != spec.target_key:
                raise ConfigurationError(
                    f"{scope}: source key {key!r} is wrapped by both "
                    f"{first!r} and {spec.target_key!r}",
                    hint="Set overlapping_sources='allow' to copy it into both.",
                )
        targets.add(spec.target_key)


class MapperBuilder:
    """Collect top-level attributes and wraps, then build a `Mapper`."""

    def __init__(
        self,
        *,
        reject_keys: bool = False,
        settings: WrapSettings | Mapping[str, Any] | None = None,
    ) -> None:
        if isinstance(settings, WrapSettings):
            self.settings = settings
        else:
            self.settings = resolve_settings(overrides=settings)
        self._reject_keys = reject_keys
        self._attributes: list[AttributeSpec] = []
        self._wraps: list[WrapBuilder] = []

    def attribute(self, name: str, *, from_: str | None = None) -> MapperBuilder:
        """Declare a top-level attribute, optionally renamed from *from_*."""
        self._attributes.append(AttributeSpec(name, from_))
        return self

    def reject_keys(self, flag: bool = True) -> MapperBuilder:
        """Keep only declared attributes and wrap targets in the output."""
        self._reject_keys = flag
        return self

    def wrap(
        self,
        target_key: str,
        *,
        attributes: Iterable[AttributeDecl] | None = None,
        sources: Iterable[str] | None = None,
        prefix: str | Literal[True] | None = None,
        prefix_separator: str | None = None,
        mapper: DelegateMapper | None = None,
        model: Any = None,
    ) -> WrapBuilder:
        """Declare a wrap; configure it further through the returned builder."""
        builder = WrapBuilder(
            target_key,
            settings=self.settings,
            attributes=attributes,
            sources=sources,
            prefix=prefix,
            prefix_separator=prefix_separator,
            mapper=mapper,
            model=model,
        )
        self._wraps.append(builder)
        return builder

    def build(self) -> Mapper:
        """Validate all declarations and return the mapper."""
        wraps = tuple(builder.build() for builder in self._wraps)
        validate_siblings(wraps, self.settings)
        mapper = Mapper(
            self._attributes,
            wraps,
            reject_keys=self._reject_keys,
            settings=self.settings,
        )
        logger.debug("Built %r", mapper)
        return mapper


__all__ = ["MapperBuilder", "WrapBuilder", "validate_siblings"]
