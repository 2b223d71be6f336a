"""Record base class: a thin wrapper over one persisted row.

Records are SQLAlchemy declarative classes.  Their table name follows the naming
convention: the ``Record`` suffix is dropped and the rest pluralized, so ``UserRecord``
maps to ``users`` and ``BlogPostRecord`` to ``blog_posts``.  Declare
``__tablename__`` to override.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import declared_attr

from repokit.domain.lookup import RECORD, registry
from repokit.domain.naming import pluralize, strip_suffix, underscore

from ..database import Base


def table_name_for(class_name: str) -> str:
    return pluralize(underscore(strip_suffix(class_name, "Record")))


class Record(Base):
    __abstract__ = True

    class_kind = RECORD

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        registry.register(cls)

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return table_name_for(cls.__name__)

    @classmethod
    def primary_key(cls) -> Any:
        return sa_inspect(cls).primary_key[0]

    def to_hash(self) -> dict[str, Any]:
        """Column attributes by name."""
        return {attr.key: getattr(self, attr.key) for attr in sa_inspect(type(self)).column_attrs}

    def __repr__(self) -> str:
        attrs = ", ".join(f"{k}={v!r}" for k, v in self.to_hash().items())
        return f"{type(self).__name__}({attrs})"
