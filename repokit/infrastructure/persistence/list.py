"""Lists of models, backed by a query Scope or by an in-memory list of records.

A List is what repository query methods return.  It can be reordered and paginated, and
it turns records into models only when it is traversed::

    users.all().order("name").limit(10).to_list()
    users.all().pluck("id", "email")
    users.all().first_result()          # Success(model) or Failure(...)

Extend it for domain-specific queries and declare the subclass as the repository's
``list_class``::

    class UserList(List):
        def admins(self) -> UserList:
            return self._new(self._source.where(admin=True))

Lists built from a Python list or tuple of records are ``ArrayList``s, which implement
the same ordering and pagination in memory.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from typing import Any, ClassVar

from repokit.domain.errors import BASE, Errors
from repokit.domain.lookup import registry
from repokit.domain.result import Failure, Result, Success

from .ordering import parse_order, reverse_order, sort_records
from .scope import RecordNotFound, Scope
from .to_hash import default_record_to_hash


def _to_order(order: Any) -> dict[str, str]:
    if not order:
        return {}
    if isinstance(order, (list, tuple)):
        return parse_order(*order)
    return parse_order(order)


class List:
    array_class: ClassVar[type[List]]

    def __new__(cls, source: Any, **kwargs: Any) -> List:
        if isinstance(source, (list, tuple)) and not issubclass(cls, ArrayList):
            instance = super().__new__(cls.array_class)
            if not isinstance(instance, cls):
                instance.__init__(source, **kwargs)
            return instance
        return super().__new__(cls)

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        registry.register(cls)

    def __init__(
        self,
        source: Any,
        *,
        model_class: Any,
        record_to_hash: Callable[[Any], Mapping[str, Any]] = default_record_to_hash,
        default_order: Any = None,
    ) -> None:
        self._source = source
        self.model_class = model_class
        self.record_to_hash = record_to_hash
        self._default_order = _to_order(default_order)

    def _new(self, source: Any = None, **changes: Any) -> List:
        values: dict[str, Any] = {
            "model_class": self.model_class,
            "record_to_hash": self.record_to_hash,
            "default_order": self._default_order,
        }
        values.update(changes)
        return type(self)(self._source if source is None else source, **values)

    def _resolved(self) -> Scope:
        if self._default_order and not self._source.ordered:
            return self._source.order(self._default_order)
        return self._source

    def model(self, record: Any) -> Any:
        return self.model_class(**self.record_to_hash(record))

    def _models(self, records: list[Any]) -> list[Any]:
        return [self.model(record) for record in records]

    # traversal

    def __iter__(self) -> Iterator[Any]:
        for record in self._resolved().records():
            yield self.model(record)

    def to_list(self) -> list[Any]:
        return list(self)

    def count(self) -> int:
        return self._source.count()

    def __len__(self) -> int:
        return self.count()

    def exists(self) -> bool:
        return self._source.exists()

    def pluck(self, *columns: str) -> list[Any]:
        return self._resolved().pluck(*columns)

    def first(self, n: int | None = None) -> Any:
        scope = self._resolved()
        if not scope.ordered:
            scope = scope.order(scope.primary_key().key)
        limit = n if n is not None else 1
        if scope.limit_value is not None:
            limit = min(limit, scope.limit_value)
        return self._single_or_many(scope.limit(limit).records(), n)

    def last(self, n: int | None = None) -> Any:
        scope = self._resolved()
        count = n if n is not None else 1
        if scope.limit_value is not None or scope.offset_value is not None:
            records = scope.records()[-count:] if count else []
        else:
            records = list(reversed(scope.reverse_order().limit(count).records()))
        return self._single_or_many(records, n)

    def __getitem__(self, index: int | slice) -> Any:
        records = self._resolved().records()
        if isinstance(index, slice):
            return self._models(records[index])
        return self.model(records[index])

    def _single_or_many(self, records: list[Any], n: int | None) -> Any:
        if n is not None:
            return self._models(records)
        return self.model(records[0]) if records else None

    def first_result(self) -> Result[Any]:
        return self._found(self.first())

    def last_result(self) -> Result[Any]:
        return self._found(self.last())

    def _found(self, model: Any) -> Result[Any]:
        if model is None:
            return Failure(RecordNotFound("No record exists"), Errors.from_mapping({BASE: "not found"}))
        return Success(model)

    # refinement

    def order(self, *args: Any, **kwargs: Any) -> List:
        return self._new(self._source.order(*args, **kwargs), default_order=None)

    def reorder(self, *args: Any, **kwargs: Any) -> List:
        return self._new(self._source.reorder(*args, **kwargs), default_order=None)

    def reverse_order(self) -> List:
        return self._new(self._resolved().reverse_order(), default_order=None)

    def limit(self, limit: int | None) -> List:
        return self._new(self._source.limit(limit))

    def offset(self, offset: int | None) -> List:
        return self._new(self._source.offset(offset))

    def default_order(self, *args: Any, **kwargs: Any) -> List:
        """Order used while no explicit order has been applied."""
        return self._new(default_order=parse_order(*args, **kwargs))

    def __repr__(self) -> str:
        return f"<{type(self).__name__} of {getattr(self.model_class, '__name__', self.model_class)}: {self._source!r}>"


class ArrayList(List):
    """A List over records already in memory."""

    def __init__(
        self,
        source: Any,
        *,
        order: Mapping[str, str] | None = None,
        limit: int | None = None,
        offset: int | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(list(source), **kwargs)
        self._order = dict(order or {})
        self._limit = limit
        self._offset = offset

    def _new(self, source: Any = None, **changes: Any) -> List:
        values: dict[str, Any] = {"order": self._order, "limit": self._limit, "offset": self._offset}
        values.update(changes)
        return super()._new(source, **values)

    def _resolved(self) -> list[Any]:  # type: ignore[override]
        records = sort_records(self._source, self._order or self._default_order)
        if self._offset is not None:
            records = records[self._offset :]
        if self._limit is not None:
            records = records[: self._limit]
        return records

    def __iter__(self) -> Iterator[Any]:
        for record in self._resolved():
            yield self.model(record)

    def count(self) -> int:
        return len(self._resolved())

    def exists(self) -> bool:
        return bool(self._resolved())

    def pluck(self, *columns: str) -> list[Any]:
        rows = [default_record_to_hash(record) for record in self._resolved()]
        if len(columns) == 1:
            return [row.get(columns[0]) for row in rows]
        return [tuple(row.get(column) for column in columns) for row in rows]

    def first(self, n: int | None = None) -> Any:
        records = self._resolved()
        return self._single_or_many(records[: n if n is not None else 1], n)

    def last(self, n: int | None = None) -> Any:
        records = self._resolved()
        count = n if n is not None else 1
        return self._single_or_many(records[-count:] if count else [], n)

    def __getitem__(self, index: int | slice) -> Any:
        records = self._resolved()
        if isinstance(index, slice):
            return self._models(records[index])
        return self.model(records[index])

    def order(self, *args: Any, **kwargs: Any) -> List:
        return self._new(order={**self._order, **parse_order(*args, **kwargs)}, default_order=None)

    def reorder(self, *args: Any, **kwargs: Any) -> List:
        return self._new(order=parse_order(*args, **kwargs), default_order=None)

    def reverse_order(self) -> List:
        return self._new(order=reverse_order(self._order or self._default_order), default_order=None)

    def limit(self, limit: int | None) -> List:
        return self._new(limit=limit)

    def offset(self, offset: int | None) -> List:
        return self._new(offset=offset)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} of {getattr(self.model_class, '__name__', self.model_class)}: {len(self._source)} records>"


List.array_class = ArrayList
