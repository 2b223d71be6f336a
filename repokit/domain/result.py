"""Success / Failure results returned by every repository operation.

Callers branch on the result instead of catching exceptions for expected failures::

    result = users.create(user_input)
    if result.is_failure:
        return render_form(result.failure)          # the input, with its errors
    user = result.value

or chain them::

    users.find(user_id).and_then(lambda user: posts.all_for(user.id).first_result())
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from .errors import Errors, errors_from
from .exceptions import FailureError

T = TypeVar("T")


class Result(ABC, Generic[T]):
    @property
    @abstractmethod
    def is_success(self) -> bool: ...

    @property
    def is_failure(self) -> bool:
        return not self.is_success

    @abstractmethod
    def value_or(self, default: Any) -> Any: ...

    @abstractmethod
    def and_then(self, fn: Callable[[T], Any]) -> Result[Any]:
        """Chain another step, whose return value (a Result or a plain value) is the new result."""

    @abstractmethod
    def and_tap(self, fn: Callable[[T], Any]) -> Result[T]:
        """Run a side effect, keeping this result unless the side effect returns a Failure."""

    @staticmethod
    def to_result(block: Callable[[], Any]) -> Result[Any]:
        return to_result(block())


def to_result(value: Any) -> Result[Any]:
    return value if isinstance(value, Result) else Success(value)


@dataclass(frozen=True)
class Success(Result[T]):
    value: T

    @property
    def is_success(self) -> bool:
        return True

    def value_or(self, default: Any) -> T:
        return self.value

    def and_then(self, fn: Callable[[T], Any]) -> Result[Any]:
        return to_result(fn(self.value))

    def and_tap(self, fn: Callable[[T], Any]) -> Result[T]:
        tapped = fn(self.value)
        return tapped if isinstance(tapped, Failure) else self


@dataclass(frozen=True)
class Failure(Result[Any]):
    failure: Any
    errors: Errors = field(default_factory=Errors)

    @classmethod
    def of(cls, failure: Any, errors: Any = None) -> Failure:
        """Build a failure; an input-like failure contributes its own errors."""
        if errors is None and isinstance(getattr(failure, "errors", None), Errors):
            return cls(failure, failure.errors)
        return cls(failure, errors_from(errors))

    @property
    def is_success(self) -> bool:
        return False

    @property
    def value(self) -> Any:
        raise FailureError(f"Failure has no value: {self.failure!r} {self.errors.messages}")

    def value_or(self, default: Any) -> Any:
        return default

    def and_then(self, fn: Callable[[Any], Any]) -> Result[Any]:
        return self

    def and_tap(self, fn: Callable[[Any], Any]) -> Result[Any]:
        return self
