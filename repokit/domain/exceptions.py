"""Exception types raised by the data-access layer.

Expected persistence failures (not found, constraint violations) are never raised to
callers; they come back as Failure results.  The exceptions below signal programming or
configuration mistakes and are meant to fail loudly.
"""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Wrong argument shape, unknown optional key, or ambiguous options."""


class ClassNotFoundError(RuntimeError):
    """A convention-derived class was used, but it could not be found."""

    def __init__(self, missing: object) -> None:
        self.missing = missing
        super().__init__(f"{missing!r} was accessed, but it was not found")


class InvalidAttributesError(RuntimeError):
    """Structured attributes were requested from an invalid input."""


class UnloadedAttributeError(RuntimeError):
    """An attribute that was intentionally not loaded was used."""


class FrozenRepositoryError(AttributeError):
    """A repository instance was mutated after construction."""


class FailureError(RuntimeError):
    """The value of a Failure result was requested."""


class Rollback(Exception):
    """Raised inside ``Repository.transaction`` to roll back its savepoint quietly."""
