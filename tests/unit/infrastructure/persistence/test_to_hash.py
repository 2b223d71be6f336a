"""Tests for repokit/infrastructure/persistence/to_hash.py."""

from types import SimpleNamespace

import pytest

from repokit.domain.exceptions import ConfigurationError
from repokit.infrastructure.persistence.to_hash import RecordToHash


def _record(**attrs):
    values = {"id": 1, "name": "Ann", "email": "ann@example.com", **attrs}
    return SimpleNamespace(to_hash=lambda: dict(values), **values)


def test_defaults_to_record_to_hash():
    assert RecordToHash()(_record()) == {"id": 1, "name": "Ann", "email": "ann@example.com"}


def test_only():
    assert RecordToHash(only=("id", "name"))(_record()) == {"id": 1, "name": "Ann"}


def test_except():
    assert RecordToHash(except_="email")(_record()) == {"id": 1, "name": "Ann"}


def test_only_and_except_are_exclusive():
    with pytest.raises(ConfigurationError):
        RecordToHash(only=("id",), except_=("name",))


def test_extra_attributes_are_computed_from_record():
    to_hash = RecordToHash(extra={"shout": lambda record: record.name.upper()})
    assert to_hash(_record())["shout"] == "ANN"


def test_extra_attributes_may_ignore_the_record():
    to_hash = RecordToHash(extra={"version": lambda: 2})
    assert to_hash(_record())["version"] == 2


def test_always_attributes_use_on_missing():
    to_hash = RecordToHash(always=("posts", "name"), on_missing=lambda name: f"<{name}>")
    attrs = to_hash(_record())
    assert attrs["posts"] == "<posts>"
    assert attrs["name"] == "Ann"


def test_always_attributes_default_to_none():
    assert RecordToHash(always=("posts",))(_record())["posts"] is None


def test_extra_wins_over_placeholder():
    to_hash = RecordToHash(extra={"posts": lambda record: []}, always=("posts",), on_missing=lambda name: "x")
    assert to_hash(_record())["posts"] == []


def test_mapping_records_are_not_mutated():
    record = {"id": 1}
    RecordToHash(extra={"x": lambda r: 2})(record)
    assert record == {"id": 1}
