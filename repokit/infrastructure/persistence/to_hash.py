"""Projection of a record into the attribute mapping a Model is built from."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any

from repokit.domain.callables import call_with_arity
from repokit.domain.exceptions import ConfigurationError


def _names(value: str | Iterable[str] | None) -> tuple[str, ...] | None:
    if value is None:
        return None
    return (value,) if isinstance(value, str) else tuple(value)


class RecordToHash:
    """Turns a record into a dict.

    only:       attribute names to keep
    except_:    attribute names to drop
    extra:      attribute name -> callable(record) or callable(), e.g. ``{"full_name": lambda r: ...}``
    always:     attribute names that must be present in the output
    on_missing: callable(attribute name) giving the value of a missing ``always`` attribute
    """

    def __init__(
        self,
        *,
        extra: Mapping[str, Callable[..., Any]] | None = None,
        only: str | Iterable[str] | None = None,
        except_: str | Iterable[str] | None = None,
        always: Iterable[str] = (),
        on_missing: Callable[[str], Any] | None = None,
    ) -> None:
        if only is not None and except_ is not None:
            raise ConfigurationError("can't set both only and except_")
        self.extra = dict(extra or {})
        self.only = _names(only)
        self.except_ = _names(except_)
        self.always = tuple(always)
        self.on_missing = on_missing

    def __call__(self, record: Any) -> dict[str, Any]:
        source = record if isinstance(record, Mapping) else record.to_hash()
        attrs = dict(source)
        if self.only is not None:
            attrs = {k: v for k, v in attrs.items() if k in self.only}
        if self.except_ is not None:
            attrs = {k: v for k, v in attrs.items() if k not in self.except_}
        for name, loader in self.extra.items():
            attrs[name] = call_with_arity(loader, record)
        for name in self.always:
            if name not in attrs:
                attrs[name] = self.on_missing(name) if self.on_missing else None
        return attrs


def default_record_to_hash(record: Any) -> dict[str, Any]:
    return dict(record) if isinstance(record, Mapping) else record.to_hash()
