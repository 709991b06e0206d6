"""The wrap transformer: pure, synchronous record reshaping.

`apply_wraps` takes a flat record and a sequence of `WrapSpec`s and returns a
new record in which each spec's source keys have been removed from the top
level and re-inserted, nested, under the spec's target key. The input record
is never mutated and no state survives between calls.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from rowwrap.config import WrapSettings
from rowwrap.errors import MissingKeyError, ModelBuildError, RowwrapError
from rowwrap.wrap import delegate_source_keys

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from rowwrap.types import Record
    from rowwrap.wrap import WrapSpec

logger = logging.getLogger(__name__)

_DEFAULT_SETTINGS = WrapSettings()

ExtractionPlan = list[tuple[str, str]]


def apply_wraps(
    record: Mapping[str, Any],
    specs: Sequence[WrapSpec],
    *,
    reject_unlisted: bool = False,
    declared: Iterable[str] = (),
    settings: WrapSettings | None = None,
) -> Record:
    """Apply *specs* to *record* in declaration order.

    Args:
        record: Flat input record. Left untouched.
        specs: Wraps to apply, in order.
        reject_unlisted: Keep only *declared* keys and produced target keys
            in the top-level output.
        declared: Top-level attribute names declared by the owning mapper.
        settings: Resolved settings; library defaults when omitted.

    Returns:
        A new record.

    Raises:
        MissingKeyError: A planned source key is absent and the missing-key
            policy is ``"error"``.
        ModelBuildError: A model builder failed.
    """
    settings = settings or _DEFAULT_SETTINGS
    output: Record = dict(record)
    produced: list[str] = []

    for spec in specs:
        plan = extraction_plan(spec, record)
        logger.debug("wrap %r: extraction plan %r", spec.target_key, plan)
        nested = _build_nested(spec, plan, record, settings)
        for source, _local in plan:
            # An earlier sibling's target is output, not input.
            if source not in produced:
                output.pop(source, None)
        # Insert after removals so a self-named wrap ends up with the nested value.
        output[spec.target_key] = nested
        produced.append(spec.target_key)

    if reject_unlisted:
        keep = set(declared).union(produced)
        output = {k: v for k, v in output.items() if k in keep}

    return output


def extraction_plan(spec: WrapSpec, record: Mapping[str, Any]) -> ExtractionPlan:
    """Return ``(source_key, local_name)`` pairs *spec* extracts from *record*.

    Sources, first match wins: explicit ``source_keys``; the delegate's
    declared keys (or inline attributes without a delegate); every key under
    the prefix. Keys needed by nested wraps are added after that.
    """
    if spec.source_keys is not None:
        return _dedupe((key, spec.local_for(key)) for key in spec.source_keys)

    if spec.delegate is not None:
        declared = delegate_source_keys(spec.delegate)
    else:
        declared = tuple(attr.name for attr in spec.attributes)

    pairs: ExtractionPlan
    head = spec.head
    if declared:
        pairs = [(spec.source_for(local), local) for local in declared]
    elif head is not None:
        pairs = [
            (key, key[len(head) :])
            for key in record
            if key.startswith(head) and len(key) > len(head)
        ]
    else:
        pairs = []

    if spec.delegate is None and spec.wraps:
        view = local_view(spec, record)
        local_record = {local: record[source] for local, source in view.items()}
        for child in spec.wraps:
            for key, _ in extraction_plan(child, local_record):
                pairs.append((view.get(key, spec.source_for(key)), key))

    return _dedupe(pairs)


def local_view(spec: WrapSpec, record: Mapping[str, Any]) -> dict[str, str]:
    """Map each name visible inside *spec* to the record key backing it.

    Explicit renames shadow prefix-stripped names, which shadow identity.
    """
    view = {key: key for key in record}
    head = spec.head
    if head is not None:
        for key in record:
            if key.startswith(head) and len(key) > len(head):
                view[key[len(head) :]] = key
    for local, source in spec.renames.items():
        if source in record:
            view[local] = source
    return view


def _build_nested(
    spec: WrapSpec,
    plan: ExtractionPlan,
    record: Mapping[str, Any],
    settings: WrapSettings,
) -> Any:
    nested: Record = {}
    for source, local in plan:
        if source in record:
            nested[local] = record[source]
        elif settings.missing_keys == "error":
            raise MissingKeyError(
                f"wrap {spec.target_key!r}: source key {source!r} not in record",
                key=source,
                target_key=spec.target_key,
                hint="Set missing_keys='skip' to leave absent attributes out.",
            )
        else:
            logger.debug(
                "wrap %r: source key %r missing, skipped", spec.target_key, source
            )

    if spec.delegate is not None:
        nested = spec.delegate.transform(nested)
    elif spec.wraps:
        nested = apply_wraps(nested, spec.wraps, settings=settings)

    if spec.model is None:
        return nested
    try:
        return spec.model.construct(nested)
    except RowwrapError:
        raise
    except Exception as exc:
        raise ModelBuildError(
            f"wrap {spec.target_key!r}: model construction failed: {exc}",
            target_key=spec.target_key,
        ) from exc


def _dedupe(pairs: Iterable[tuple[str, str]]) -> ExtractionPlan:
    return list(dict.fromkeys(pairs))


__all__ = ["apply_wraps", "extraction_plan", "local_view"]
