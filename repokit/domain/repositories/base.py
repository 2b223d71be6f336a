"""Generic repository interface.

RepositoryInterface[T] is the root abstraction for data access.  The SQLAlchemy
implementation lives in repokit/infrastructure/persistence/repository.py.

Design notes:
  - T is the domain model type (never an ORM row or an input).
  - Single-record operations return a Result: expected failures (not found, constraint
    violations) are Failures, never raised.
  - all() returns a List, which is refined (order/limit/offset) rather than filtered;
    domain-specific filters are declared as methods on each concrete repository.
  - with_() returns a sibling repository loading the named optional attributes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

from ..result import Result

T = TypeVar("T")


class RepositoryInterface(ABC, Generic[T]):
    """The operations every repository supports."""

    @abstractmethod
    def find(self, pk: Any = ..., *, by: Any = None) -> Result[T]:
        """Find by primary key, or by a mapping of attributes (exactly one of them)."""

    @abstractmethod
    def all(self) -> Any:
        """Return a List of every model in the repository's scope."""

    @abstractmethod
    def create(self, input: Any) -> Result[T]:
        """Persist a new record from the input's attributes."""

    @abstractmethod
    def update(self, pk: Any, input: Any) -> Result[T]:
        """Apply the input's attributes to an existing record."""

    @abstractmethod
    def upsert(self, *, by: Any, input: Any = None) -> Result[T]:
        """Update the record matching ``by``, or create it."""

    @abstractmethod
    def destroy(self, pk: Any) -> Result[T]:
        """Remove a record, returning the model it held."""

    @abstractmethod
    def with_(self, *optional: Any, **nested: Any) -> RepositoryInterface[T]:
        """Return a repository that also loads the named optional attributes."""
