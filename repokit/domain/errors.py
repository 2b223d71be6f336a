"""Field-keyed error collection shared by inputs and failed results."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

BASE = "base"

DEFAULT_MESSAGES = {
    "blank": "can't be blank",
    "taken": "has already been taken",
    "invalid": "is invalid",
    "not_found": "not found",
    "unknown": "is not a known attribute",
}


@dataclass(frozen=True)
class ErrorDetail:
    error: str
    options: Mapping[str, Any] = field(default_factory=dict)

    @property
    def message(self) -> str:
        message = self.options.get("message") or DEFAULT_MESSAGES.get(self.error, self.error)
        scope = self.options.get("scope")
        if scope:
            message = f"{message} in scope {', '.join(scope)}"
        return message

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.error, **self.options}


def humanize(attribute: str) -> str:
    text = attribute.removesuffix("_id").replace("_", " ").strip()
    return text[:1].upper() + text[1:]


class Errors:
    """Problems keyed by attribute name, ``base`` holding the ones about the whole object.

    An error is a symbolic key (``blank``, ``taken``...) with a default message, or a
    plain message.
    """

    def __init__(self) -> None:
        self._details: dict[str, list[ErrorDetail]] = {}

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> Errors:
        errors = cls()
        for attribute, problems in mapping.items():
            if isinstance(problems, (str, ErrorDetail)):
                problems = [problems]
            for problem in problems:
                if isinstance(problem, ErrorDetail):
                    errors._details.setdefault(str(attribute), []).append(problem)
                else:
                    errors.add(str(attribute), str(problem))
        return errors

    @classmethod
    def from_message(cls, message: str) -> Errors:
        return cls.from_mapping({BASE: message})

    def add(self, attribute: str, error: str = "invalid", **options: Any) -> ErrorDetail:
        detail = ErrorDetail(error, options)
        self._details.setdefault(attribute, []).append(detail)
        return detail

    def merge(self, other: Errors) -> Errors:
        for attribute, details in other._details.items():
            self._details.setdefault(attribute, []).extend(details)
        return self

    def copy(self) -> Errors:
        return Errors().merge(self)

    def clear(self) -> None:
        self._details.clear()

    @property
    def details(self) -> dict[str, list[dict[str, Any]]]:
        return {attr: [d.to_dict() for d in details] for attr, details in self._details.items()}

    @property
    def messages(self) -> dict[str, list[str]]:
        return {attr: [d.message for d in details] for attr, details in self._details.items()}

    @property
    def full_messages(self) -> list[str]:
        return [
            d.message if attr == BASE else f"{humanize(attr)} {d.message}"
            for attr, details in self._details.items()
            for d in details
        ]

    def __getitem__(self, attribute: str) -> list[str]:
        return [d.message for d in self._details.get(attribute, [])]

    def __contains__(self, attribute: object) -> bool:
        return attribute in self._details

    def __iter__(self) -> Iterator[str]:
        return iter(self._details)

    def __len__(self) -> int:
        return sum(len(details) for details in self._details.values())

    def __bool__(self) -> bool:
        return bool(self._details)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Errors) and self._details == other._details

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Errors({self.details!r})"


def errors_from(value: Errors | Mapping[str, Any] | str | Iterable[Any] | None) -> Errors:
    """Normalize a handler's return value: an Errors, a field mapping, or a base message."""
    if isinstance(value, Errors):
        return value
    if isinstance(value, Mapping):
        return Errors.from_mapping(value)
    if value is None:
        return Errors()
    return Errors.from_message(str(value))
