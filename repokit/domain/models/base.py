"""Model base classes.

Models are pure, immutable domain objects: no ORM or persistence concerns.  They are
built by repositories from a complete attribute mapping; a missing required attribute,
or an attribute the model does not declare, fails at construction time (Pydantic).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict

from ..lookup import MODEL, registry


class Model(BaseModel):
    """Immutable value object, equal to another model with the same attributes.

    Attributes the repository may leave unloaded are declared ``Loadable[...]``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    class_kind: ClassVar[str] = MODEL

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs: Any) -> None:
        super().__pydantic_init_subclass__(**kwargs)
        registry.register(cls)

    @classmethod
    def attribute_names(cls) -> list[str]:
        return list(cls.model_fields)

    def to_hash(self) -> dict[str, Any]:
        """Shallow attribute mapping, nested models and placeholders left as they are."""
        return dict(self)


class PersistedModel(Model):
    """A model backed by a stored row: equal to another of its class with the same id."""

    id: Any = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        if self.id is None or other.id is None:  # type: ignore[attr-defined]
            return super().__eq__(other)
        return self.id == other.id  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((type(self), self.id))

    @property
    def persisted(self) -> bool:
        return self.id is not None

    def to_param(self) -> str:
        return str(self.id)
