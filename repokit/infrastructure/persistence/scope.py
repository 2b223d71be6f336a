"""Immutable query scope over one record class.

A Scope is what repositories, optional bundles and Lists refine: every method returns a
new Scope.  Filters, joins and loader options go into the SQLAlchemy statement; order,
limit and offset are kept aside and only compiled when the scope is executed, so they
can still be reversed or replaced.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from sqlalchemy import Select, func, literal_column, select
from sqlalchemy.exc import NoResultFound
from sqlalchemy.orm import Session, SessionTransaction

from .ordering import ASC, DESC, parse_order, reverse_order


class RecordNotFound(NoResultFound):
    """No record matched a find."""


class Scope:
    def __init__(
        self,
        session: Session,
        record_class: type,
        statement: Select | None = None,
        *,
        options: tuple[Any, ...] = (),
        order: dict[str, str] | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> None:
        self.session = session
        self.record_class = record_class
        self.statement = statement if statement is not None else select(record_class)
        self.loader_options = options
        self.order_spec: dict[str, str] = dict(order or {})
        self.limit_value = limit
        self.offset_value = offset

    def _derive(self, **changes: Any) -> Scope:
        values: dict[str, Any] = {
            "statement": self.statement,
            "options": self.loader_options,
            "order": self.order_spec,
            "limit": self.limit_value,
            "offset": self.offset_value,
        }
        values.update(changes)
        return Scope(self.session, self.record_class, **values)

    # refinement

    def where(self, *criteria: Any, **filters: Any) -> Scope:
        for name, value in filters.items():
            column = self.column(name)
            criteria += (column.in_(value) if isinstance(value, (list, tuple, set)) else column == value,)
        return self._derive(statement=self.statement.where(*criteria))

    def join(self, target: Any, *args: Any, **kwargs: Any) -> Scope:
        return self._derive(statement=self.statement.join(target, *args, **kwargs))

    def distinct(self) -> Scope:
        return self._derive(statement=self.statement.distinct())

    def options(self, *options: Any) -> Scope:
        return self._derive(options=self.loader_options + options)

    def order(self, *args: Any, **kwargs: Any) -> Scope:
        return self._derive(order={**self.order_spec, **parse_order(*args, **kwargs)})

    def reorder(self, *args: Any, **kwargs: Any) -> Scope:
        return self._derive(order=parse_order(*args, **kwargs))

    def reverse_order(self) -> Scope:
        order = self.order_spec or {self.primary_key().key: ASC}
        return self._derive(order=reverse_order(order))

    def limit(self, limit: int | None) -> Scope:
        return self._derive(limit=limit)

    def offset(self, offset: int | None) -> Scope:
        return self._derive(offset=offset)

    @property
    def ordered(self) -> bool:
        return bool(self.order_spec)

    # compilation

    def primary_key(self) -> Any:
        return self.record_class.primary_key()

    def column(self, name: str) -> Any:
        attribute = getattr(self.record_class, name, None)
        return attribute if attribute is not None else literal_column(name)

    def _order_by(self) -> list[Any]:
        clauses = []
        for name, dir_ in self.order_spec.items():
            column = self.column(name)
            clauses.append(column.desc().nulls_first() if dir_ == DESC else column.asc().nulls_last())
        return clauses

    def _paginate(self, statement: Select) -> Select:
        statement = statement.order_by(*self._order_by())
        if self.limit_value is not None:
            statement = statement.limit(self.limit_value)
        if self.offset_value is not None:
            statement = statement.offset(self.offset_value)
        return statement

    def to_statement(self) -> Select:
        return self._paginate(self.statement.options(*self.loader_options))

    # execution

    def records(self) -> list[Any]:
        return list(self.session.scalars(self.to_statement()).unique())

    def __iter__(self) -> Iterator[Any]:
        return iter(self.records())

    def count(self) -> int:
        counted = self._paginate(self.statement).subquery()
        return self.session.scalar(select(func.count()).select_from(counted)) or 0

    def exists(self) -> bool:
        limit = 1 if self.limit_value is None else min(1, self.limit_value)
        return self.limit(limit).count() > 0

    def pluck(self, *columns: str) -> list[Any]:
        statement = self._paginate(self.statement.with_only_columns(*(self.column(c) for c in columns)))
        rows = self.session.execute(statement).all()
        return [row[0] for row in rows] if len(columns) == 1 else [tuple(row) for row in rows]

    def find(self, pk: Any) -> Any:
        pk_column = self.primary_key()
        statement = self.statement.options(*self.loader_options).where(pk_column == pk)
        record = self.session.scalars(statement).unique().one_or_none()
        if record is None:
            raise RecordNotFound(f"Couldn't find {self.record_class.__name__} with {pk_column.key}={pk!r}")
        return record

    def find_by(self, **filters: Any) -> Any:
        record = self.find_by_or_none(**filters)
        if record is None:
            raise RecordNotFound(f"Couldn't find {self.record_class.__name__} with {filters!r}")
        return record

    def find_by_or_none(self, **filters: Any) -> Any:
        return self.session.scalars(self.where(**filters).limit(1).to_statement()).unique().first()

    def find_or_initialize_by(self, **filters: Any) -> Any:
        record = self.find_by_or_none(**filters)
        return record if record is not None else self.record_class(**filters)

    def create(self, **attributes: Any) -> Any:
        return self.save(self.record_class(**attributes))

    def save(self, record: Any) -> Any:
        self.session.add(record)
        self.session.flush()
        return record

    def destroy(self, record: Any) -> Any:
        self.session.delete(record)
        self.session.flush()
        return record

    def transaction(self) -> SessionTransaction:
        """A new SAVEPOINT, even when already inside a transaction; usable as a context manager."""
        return self.session.begin_nested()

    def __repr__(self) -> str:
        return f"Scope({self.record_class.__name__}, order={self.order_spec}, limit={self.limit_value}, offset={self.offset_value})"
