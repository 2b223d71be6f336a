"""Translation of persistence exceptions into Failure results.

Each repository class owns an ``ExceptionHandlers`` list.  A handler is registered for an
exception class or a predicate, and returns the errors to report (a field mapping, an
``Errors`` or a base message)::

    config.exception(InsufficientFunds, lambda e: {"amount": "exceeds balance"})

Predicate handlers are consulted first, newest first.  Class handlers follow, nearest
class in the exception's hierarchy first, so a broad ``SQLAlchemyError`` handler never
shadows a ``NoResultFound`` one; for the same class the newest registration wins, which
puts a subclass repository's handlers ahead of its parent's.  A handler returning a falsy
value passes the exception on to the next one.  Exceptions no handler claims are
re-raised.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from typing import Any, TypeVar

from sqlalchemy.exc import IntegrityError, NoResultFound

from repokit.domain.callables import call_with_arity
from repokit.domain.errors import Errors, errors_from
from repokit.domain.result import Failure, Result, to_result

logger = logging.getLogger(__name__)

T = TypeVar("T")

Matcher = type[BaseException] | Callable[[BaseException], bool]
Handler = Callable[..., Any]

NOT_NULL_VIOLATION = "23502"
UNIQUE_VIOLATION = "23505"

_PG_COLUMN = re.compile(r'column "(\w+)"')
_SQLITE_NOT_NULL = re.compile(r"NOT NULL constraint failed: (?:\w+\.)?(\w+)")
_PG_KEY = re.compile(r"Key \(([^)]*)\)=")
_SQLITE_UNIQUE = re.compile(r"UNIQUE constraint failed: (.+)$", re.MULTILINE)


def _driver_message(exc: BaseException) -> str:
    return str(getattr(exc, "orig", None) or exc)


def _sqlstate(exc: BaseException) -> str | None:
    orig = getattr(exc, "orig", None)
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def is_not_null_violation(exc: BaseException) -> bool:
    if not isinstance(exc, IntegrityError):
        return False
    message = _driver_message(exc)
    return _sqlstate(exc) == NOT_NULL_VIOLATION or "NOT NULL constraint failed" in message or "null value in column" in message


def is_unique_violation(exc: BaseException) -> bool:
    if not isinstance(exc, IntegrityError):
        return False
    message = _driver_message(exc)
    return _sqlstate(exc) == UNIQUE_VIOLATION or "UNIQUE constraint failed" in message or "duplicate key value" in message


def not_found_errors(exc: BaseException) -> str:
    return str(exc)


def not_null_errors(exc: BaseException) -> dict[str, str] | str:
    message = _driver_message(exc)
    match = _PG_COLUMN.search(message) or _SQLITE_NOT_NULL.search(message)
    return {match.group(1): "blank"} if match else message


def unique_columns(message: str) -> list[str]:
    match = _PG_KEY.search(message)
    if match:
        return [column.strip().strip('"') for column in match.group(1).split(",")]
    match = _SQLITE_UNIQUE.search(message)
    if match:
        return [term.strip().rsplit(".", 1)[-1] for term in match.group(1).split(",")]
    return []


def unique_errors(exc: BaseException) -> Errors | str:
    message = _driver_message(exc)
    columns = unique_columns(message)
    if not columns:
        return message
    *scope, attribute = columns
    errors = Errors()
    if scope:
        errors.add(attribute, "taken", scope=tuple(scope))
    else:
        errors.add(attribute, "taken")
    return errors


class ExceptionHandlers:
    def __init__(self, handlers: list[tuple[Matcher, Handler]] | None = None) -> None:
        self._handlers: list[tuple[Matcher, Handler]] = list(handlers or [])

    @classmethod
    def defaults(cls) -> ExceptionHandlers:
        handlers = cls()
        handlers.add(NoResultFound, not_found_errors)
        handlers.add(is_not_null_violation, not_null_errors)
        handlers.add(is_unique_violation, unique_errors)
        return handlers

    def add(self, matcher: Matcher, handler: Handler) -> None:
        self._handlers.insert(0, (matcher, handler))

    def copy(self) -> ExceptionHandlers:
        return ExceptionHandlers(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)

    def candidates(self, exc: BaseException) -> list[Handler]:
        """Handlers matching exc, in the order they are consulted."""
        predicates = [handler for matcher, handler in self._handlers if not isinstance(matcher, type) and matcher(exc)]
        mro = type(exc).__mro__
        ranked = sorted(
            (mro.index(matcher), position, handler)
            for position, (matcher, handler) in enumerate(self._handlers)
            if isinstance(matcher, type) and matcher in mro
        )
        return predicates + [handler for _, _, handler in ranked]

    def errors_for(self, exc: Exception) -> Errors | None:
        for handler in self.candidates(exc):
            error = call_with_arity(handler, exc)
            if error:
                return errors_from(error)
        return None

    def wrap(self, block: Callable[[], T]) -> Result[T]:
        """Run block, returning its value as a Result, or a Failure for a handled exception."""
        try:
            return to_result(block())
        except Exception as exc:
            errors = self.errors_for(exc)
            if errors is None:
                raise
            logger.debug("Mapped %s to failure: %s", type(exc).__name__, errors.messages)
            return Failure(exc, errors)
