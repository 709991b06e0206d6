"""Unit tests for Mapper: top-level attributes, rejection and delegation."""

from __future__ import annotations

import pytest

from rowwrap.builder import MapperBuilder
from rowwrap.errors import MissingKeyError
from rowwrap.mapper import Mapper
from rowwrap.types import DelegateMapper
from rowwrap.wrap import AttributeSpec, WrapSpec

pytestmark = pytest.mark.unit


def _contact_wrap() -> WrapSpec:
    return WrapSpec(
        "contacts",
        prefix="contact",
        attributes=(AttributeSpec("email"), AttributeSpec("skype")),
    )


def test_reject_keys_keeps_declared_attributes_and_targets(user_record):
    mapper = Mapper(
        [AttributeSpec("id"), AttributeSpec("contact_email")],
        [_contact_wrap()],
        reject_keys=True,
    )

    assert mapper.transform(user_record) == {
        "id": 1,
        "contacts": {"email": "a@b.com", "skype": "joe"},
    }


def test_without_reject_keys_everything_else_passes_through(user_record):
    mapper = Mapper([AttributeSpec("id")], [_contact_wrap()])

    assert mapper.transform(user_record) == {
        "id": 1,
        "name": "Joe",
        "contacts": {"email": "a@b.com", "skype": "joe"},
    }


def test_top_level_rename(user_record):
    mapper = Mapper(
        [AttributeSpec("user_id", source="id"), AttributeSpec("name")],
        reject_keys=True,
    )

    assert mapper.transform(user_record) == {"user_id": 1, "name": "Joe"}


def test_top_level_rename_keeps_position():
    mapper = Mapper([AttributeSpec("b", source="a")])

    out = mapper.transform({"a": 1, "z": 2})

    assert list(out) == ["b", "z"]


def test_rename_never_touches_a_wrap_target():
    mapper = Mapper(
        [AttributeSpec("other", source="x")],
        [WrapSpec("x", source_keys=("a",))],
    )

    assert mapper.transform({"a": 1}) == {"x": {"a": 1}}


def test_transform_many_preserves_order():
    mapper = Mapper(wraps=[WrapSpec("pair", source_keys=("a", "b"))])
    rows = [{"a": i, "b": -i, "n": i} for i in range(3)]

    out = mapper.transform_many(rows)

    assert [row["n"] for row in out] == [0, 1, 2]
    assert out[2] == {"n": 2, "pair": {"a": 2, "b": -2}}


def test_transform_many_accepts_generators():
    mapper = Mapper()

    assert mapper.transform_many({"a": i} for i in range(2)) == [{"a": 0}, {"a": 1}]


def test_source_keys_cover_attributes_and_wraps():
    mapper = Mapper(
        [AttributeSpec("id"), AttributeSpec("label", source="title")],
        [_contact_wrap()],
    )

    assert mapper.source_keys == ("id", "title", "contact_email", "contact_skype")


def test_mapper_is_a_delegate_mapper():
    assert isinstance(Mapper(), DelegateMapper)


def test_mapper_as_delegate_for_another_wrap(user_record):
    inner = (
        MapperBuilder()
        .attribute("email")
        .attribute("handle", from_="skype")
        .reject_keys()
        .build()
    )
    outer = MapperBuilder()
    outer.attribute("id")
    outer.wrap("contact", prefix=True, mapper=inner)

    out = outer.build().transform(user_record)

    assert out == {
        "id": 1,
        "name": "Joe",
        "contact": {"email": "a@b.com", "handle": "joe"},
    }


def test_repr_names_declarations():
    mapper = Mapper([AttributeSpec("id")], [_contact_wrap()], reject_keys=True)

    assert repr(mapper) == (
        "Mapper(attributes=['id'], wraps=['contacts'], reject_keys=True)"
    )


def test_direct_mapper_reads_layered_settings(monkeypatch):
    monkeypatch.setenv("ROWWRAP_MISSING_KEYS", "error")

    mapper = Mapper(wraps=[WrapSpec("contact", source_keys=("fax",))])

    assert mapper.settings.missing_keys == "error"
    with pytest.raises(MissingKeyError):
        mapper.transform({})
