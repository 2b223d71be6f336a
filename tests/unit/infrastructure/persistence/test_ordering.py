"""Tests for repokit/infrastructure/persistence/ordering.py."""

from itertools import permutations
from types import SimpleNamespace

import pytest

from repokit.domain.exceptions import ConfigurationError
from repokit.infrastructure.persistence.ordering import parse_order, reverse_order, sort_records


def _rows(*values):
    return [SimpleNamespace(id=i, a=a, b=b) for i, (a, b) in enumerate(values)]


# --- parse_order ---

def test_parse_comma_separated_strings():
    assert parse_order("created_at DESC, name") == {"created_at": "desc", "name": "asc"}


def test_parse_mixed_arguments_keyword_directions_win():
    assert parse_order("a desc", {"b": "DESC"}, a="asc") == {"a": "asc", "b": "desc"}


def test_parse_column_named_like_desc_is_ascending():
    assert parse_order("description") == {"description": "asc"}


def test_parse_rejects_unknown_direction():
    with pytest.raises(ConfigurationError):
        parse_order(a="sideways")


def test_parse_accepts_column_objects_with_a_key():
    assert parse_order(SimpleNamespace(key="email")) == {"email": "asc"}


# --- reverse_order ---

def test_reverse_order_flips_every_direction():
    assert reverse_order({"a": "asc", "b": "desc"}) == {"a": "desc", "b": "asc"}


def test_reverse_order_twice_is_identity():
    order = parse_order("a, b desc")
    assert reverse_order(reverse_order(order)) == order


# --- sort_records ---

def test_nulls_last_ascending_first_descending():
    rows = _rows((2, 0), (None, 0), (1, 0))
    assert [r.a for r in sort_records(rows, {"a": "asc"})] == [1, 2, None]
    assert [r.a for r in sort_records(rows, {"a": "desc"})] == [None, 2, 1]


def test_multi_key_sort_falls_through_ties():
    rows = _rows((1, "b"), (0, "z"), (1, "a"))
    assert [(r.a, r.b) for r in sort_records(rows, {"a": "asc", "b": "desc"})] == [(0, "z"), (1, "b"), (1, "a")]


def test_sort_is_stable():
    rows = _rows((1, "x"), (0, "y"), (1, "z"), (0, "w"))
    assert [r.b for r in sort_records(rows, {"a": "asc"})] == ["y", "w", "x", "z"]


def test_sort_nulls_with_mixed_directions():
    rows = [{"a": 1, "b": 2}, {"a": 1, "b": 1}, {"a": None, "b": 5}]
    assert sort_records(rows, {"a": "asc", "b": "desc"}) == rows
    assert sort_records(rows, {"a": "desc"})[0] == {"a": None, "b": 5}


@pytest.mark.parametrize("order", list(permutations(range(4))))
def test_sort_is_stable_for_every_input_order(order):
    base = _rows((1, "x"), (0, "y"), (1, "z"), (0, "w"))
    rows = [base[i] for i in order]
    expected = [r.id for r in rows if r.a == 0] + [r.id for r in rows if r.a == 1]
    assert [r.id for r in sort_records(rows, {"a": "asc"})] == expected


def test_sort_without_order_keeps_records():
    rows = _rows((2, 0), (1, 0))
    assert sort_records(rows, {}) == rows


def test_sort_mappings():
    rows = [{"a": 2}, {"a": 1}]
    assert sort_records(rows, {"a": "asc"}) == [{"a": 1}, {"a": 2}]
