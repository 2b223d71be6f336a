"""SQL ORDER BY semantics for in-memory record collections.

Order specifications are accepted in the shapes ``List.order`` takes::

    parse_order("created_at desc, name")          # {"created_at": "desc", "name": "asc"}
    parse_order("email", name="desc")             # keyword directions win
    parse_order({"a": "asc"}, "b DESC")

Sorting is stable and multi-key.  Nulls sort last ascending and first descending, the
postgres default, so an array-backed List orders like a query-backed one.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from functools import cmp_to_key
from typing import Any

from repokit.domain.exceptions import ConfigurationError

ASC = "asc"
DESC = "desc"

_COLUMN = re.compile(r"\s*(\w+)")
_DESCENDING = re.compile(r"\w\s+desc\b", re.IGNORECASE)


def direction(value: Any) -> str:
    if value is None:
        return ASC
    normalized = str(value).strip().lower()
    if normalized not in (ASC, DESC):
        raise ConfigurationError(f"Unknown order direction {value!r} (use 'asc' or 'desc')")
    return normalized


def parse_order(*args: Any, **kwargs: Any) -> dict[str, str]:
    order: dict[str, str] = {}
    for arg in args:
        if arg is None:
            continue
        if isinstance(arg, Mapping):
            order.update({str(col): direction(dir_) for col, dir_ in arg.items()})
            continue
        key = getattr(arg, "key", None)
        if isinstance(key, str):
            order[key] = ASC
            continue
        for term in str(arg).split(","):
            match = _COLUMN.match(term)
            if match:
                order[match.group(1)] = DESC if _DESCENDING.search(term) else ASC
    order.update({col: direction(dir_) for col, dir_ in kwargs.items()})
    return order


def reverse_order(order: Mapping[str, str]) -> dict[str, str]:
    return {col: ASC if dir_ == DESC else DESC for col, dir_ in order.items()}


def column_value(record: Any, column: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(column)
    return getattr(record, column, None)


def compare(a: list[Any], b: list[Any], directions: list[str]) -> int:
    for x, y, dir_ in zip(a, b, directions):
        if x is None and y is None:
            continue
        if y is None:
            return 1 if dir_ == DESC else -1
        if x is None:
            return -1 if dir_ == DESC else 1
        if x == y:
            continue
        result = -1 if x < y else 1
        return -result if dir_ == DESC else result
    return 0


def sort_records(records: Iterable[Any], order: Mapping[str, str]) -> list[Any]:
    """Return records sorted by order; ties keep their original relative order."""
    records = list(records)
    if not order:
        return records
    columns = list(order)
    directions = [order[col] for col in columns]
    keyed = [([column_value(r, col) for col in columns], r) for r in records]
    keyed.sort(key=cmp_to_key(lambda a, b: compare(a[0], b[0], directions)))
    return [record for _, record in keyed]
