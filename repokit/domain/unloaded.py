"""Placeholder for a model attribute the repository intentionally did not load.

Expensive attributes (associations, aggregates) are only loaded when requested through
``Repository.with_(...)``.  Otherwise the model receives ``Unloaded(model, attribute)``,
which is distinct from a real ``None``: it is falsy, compares equal to the same
placeholder, and raises ``UnloadedAttributeError`` on any other use.

Declare such attributes with ``Loadable[...]`` and check them explicitly::

    class User(PersistedModel):
        posts: Loadable[list[Post]]

    match user.posts:
        case Unloaded():
            ...
        case posts:
            ...
"""

from __future__ import annotations

from typing import Any, TypeVar, Union

from .exceptions import UnloadedAttributeError

T = TypeVar("T")


class Unloaded:
    __slots__ = ("model_name", "attribute")
    __match_args__ = ("model_name", "attribute")

    def __init__(self, model: type | str, attribute: str) -> None:
        object.__setattr__(self, "model_name", model if isinstance(model, str) else model.__name__)
        object.__setattr__(self, "attribute", attribute)

    def __setattr__(self, name: str, value: Any) -> None:
        raise UnloadedAttributeError(f"{self} is immutable")

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__"):
            raise AttributeError(name)
        raise UnloadedAttributeError(f"{self} received .{name}")

    def __bool__(self) -> bool:
        return False

    def __iter__(self) -> Any:
        raise UnloadedAttributeError(f"{self} is not iterable")

    def __len__(self) -> int:
        raise UnloadedAttributeError(f"{self} has no length")

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, Unloaded)
            and self.model_name == other.model_name
            and self.attribute == other.attribute
        )

    def __hash__(self) -> int:
        return hash((Unloaded, self.model_name, self.attribute))

    def __str__(self) -> str:
        return f"<unloaded {self.model_name}.{self.attribute}>"

    __repr__ = __str__


Loadable = Union[Unloaded, T]


def is_loaded(value: Any) -> bool:
    return not isinstance(value, Unloaded)


def is_blank(value: Any) -> bool:
    """None, unloaded, empty or whitespace-only values are blank."""
    if value is None or isinstance(value, Unloaded):
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return len(value) == 0
    except TypeError:
        return False
