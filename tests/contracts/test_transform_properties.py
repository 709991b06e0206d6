"""Property-based guarantees of the wrap transformer."""

from __future__ import annotations

import copy
from typing import Any

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st
import pytest

from rowwrap.transform import apply_wraps
from rowwrap.wrap import AttributeSpec, WrapSpec

pytestmark = pytest.mark.contract

keys = st.text(alphabet="abcxyz_", min_size=1, max_size=5)
values = st.one_of(st.integers(), st.text(max_size=5), st.none())
records = st.dictionaries(keys, values, max_size=8)

deterministic = settings(
    max_examples=50,
    deadline=None,
    derandomize=True,
    suppress_health_check=[HealthCheck.too_slow],
)

SPECS = [
    WrapSpec("pair", source_keys=("a", "b")),
    WrapSpec("x", prefix="x"),
    WrapSpec("renamed", attributes=(AttributeSpec("first", source="c"),)),
]


def _consumed(record: dict[str, Any]) -> set[str]:
    prefixed = {k for k in record if k.startswith("x_") and len(k) > 2}
    return {"a", "b", "c"} | prefixed


@given(record=records)
@deterministic
def test_unreferenced_keys_pass_through_by_identity(record):
    out = apply_wraps(record, SPECS)

    for key, value in record.items():
        if key in _consumed(record) or key in {"pair", "x", "renamed"}:
            continue
        assert out[key] is value


@given(record=records)
@deterministic
def test_consumed_keys_never_survive_at_top_level(record):
    out = apply_wraps(record, SPECS)

    leftovers = (_consumed(record) - {"pair", "x", "renamed"}) & set(out)
    assert not leftovers


@given(record=records)
@deterministic
def test_each_spec_yields_exactly_its_target(record):
    out = apply_wraps(record, SPECS, reject_unlisted=True)

    assert set(out) == {"pair", "x", "renamed"}


@given(record=records)
@deterministic
def test_input_is_never_mutated(record):
    before = copy.deepcopy(record)

    apply_wraps(record, SPECS, reject_unlisted=True, declared=list(record))

    assert record == before


@given(record=records, declared=st.lists(keys, max_size=4))
@deterministic
def test_rejection_keeps_only_declared_and_targets(record, declared):
    out = apply_wraps(record, SPECS, reject_unlisted=True, declared=declared)

    assert set(out) <= set(declared) | {"pair", "x", "renamed"}
