"""SQLAlchemy implementation of RepositoryInterface.

A Repository is bound to a session and answers with models, never records::

    class UserRepository(Repository):
        @classmethod
        def configure(cls, config: Config) -> None:
            config.default_order("name")
            config.optional_list("posts")

        def find_by_email(self, email: str) -> Result[User]:
            return self.model_result(lambda: self.scope.find_by(email=email))

    users = UserRepository(session)
    users.find(1)                          # Success(User(...)) or Failure
    users.create(UserInput(name="Ann"))    # Failure(input) with errors on constraint violations
    users.with_("posts").all().to_list()   # users with their posts loaded

The model, record and input classes are found by naming convention (``User``,
``UserRecord``, ``UserInput`` next to ``UserRepository``) unless declared as dependencies.
Every write runs in its own savepoint, so a failed write never leaves partial changes
behind, even inside an outer transaction.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, ClassVar

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Mapper, Session

from repokit.domain.dependencies import Dependencies, dependency
from repokit.domain.errors import Errors
from repokit.domain.exceptions import ClassNotFoundError, ConfigurationError, FrozenRepositoryError, Rollback
from repokit.domain.input import to_attributes
from repokit.domain.lookup import INPUT, MODEL, RECORD, REPOSITORY, Association, MissingClass, registry
from repokit.domain.repositories.base import RepositoryInterface
from repokit.domain.result import Failure, Result, to_result

from .config import EMPTY, Config, WithSpec
from .list import List
from .scope import Scope

logger = logging.getLogger(__name__)


def _input_like(value: Any) -> bool:
    return callable(getattr(value, "valid", None)) and hasattr(value, "errors")


def _mapped(record_class: Any) -> bool:
    return isinstance(record_class, type) and isinstance(sa_inspect(record_class, raiseerr=False), Mapper)


def _assign(record: Any, attributes: dict[str, Any]) -> Any:
    for name, value in attributes.items():
        if not hasattr(type(record), name):
            raise TypeError(f"{name!r} is an invalid keyword argument for {type(record).__name__}")
        setattr(record, name, value)
    return record


class Repository(Dependencies, RepositoryInterface[Any]):
    class_kind = REPOSITORY
    class_suffixes = ("Repository", "Repo")

    model_class = dependency(Association(MODEL))
    record_class = dependency(Association(RECORD))
    input_class = dependency(Association(INPUT))
    list_class = dependency(List)

    config: ClassVar[Config] = Config().freeze()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        registry.register(cls)
        config = cls.config.derive(cls)
        if "configure" in cls.__dict__:
            cls.configure(config)
        cls.config = config.freeze()

    @classmethod
    def configure(cls, config: Config) -> None:
        """Adjust this repository class's config; called once, when the class is defined."""

    def __init__(self, session: Session, *, with_: Any = None, **dependencies: Any) -> None:
        super().__init__(**dependencies)
        config = type(self).config
        spec = config.assert_optional(WithSpec.parse(with_) if with_ is not None else EMPTY)
        record_class = self.record_class
        if isinstance(record_class, MissingClass):
            raise ClassNotFoundError(record_class)
        if not _mapped(record_class):
            raise ConfigurationError(f"{type(self).__name__}.record_class {record_class!r} is not a mapped record class")
        state = self.__dict__
        state["session"] = session
        state["with_spec"] = spec
        state["record_to_hash"] = config.record_to_hash(self.model_class, spec)
        state["scope"] = config.scope(Scope(session, record_class), spec, type(self))
        state["default_order"] = config.default_order()
        state["_siblings"] = {spec: self}

    def __setattr__(self, name: str, value: Any) -> None:
        raise FrozenRepositoryError(f"{self!r} is frozen; use with_() or narrowed() for a variant")

    def __delattr__(self, name: str) -> None:
        raise FrozenRepositoryError(f"{self!r} is frozen")

    # variants

    def with_(self, *optional: Any, **nested: Any) -> Repository:
        """The repository that also loads the named optional bundles; memoized per selection."""
        spec = type(self).config.assert_optional(self.with_spec.merge(WithSpec.parse(*optional, **nested)))
        sibling = self._siblings.get(spec)
        if sibling is None:
            sibling = type(self)(self.session, with_=spec, **self.__dict__["_dependency_overrides"])
            sibling.__dict__["_siblings"] = self._siblings
            sibling = self._siblings.setdefault(spec, sibling)
        return sibling

    def narrowed(self, new_scope: Any) -> Repository:
        """A throwaway copy of this repository whose queries run against new_scope.

        new_scope is a Scope, a List over a Scope, or a callable given the current scope.
        """
        if isinstance(new_scope, List):
            new_scope = new_scope._source
        elif callable(new_scope) and not isinstance(new_scope, Scope):
            new_scope = new_scope(self.scope)
        if not isinstance(new_scope, Scope):
            raise ConfigurationError(f"Can't narrow {self!r} to {new_scope!r}")
        narrowed = object.__new__(type(self))
        narrowed.__dict__.update(self.__dict__)
        narrowed.__dict__["scope"] = new_scope
        narrowed.__dict__["_siblings"] = {self.with_spec: narrowed}
        return narrowed

    @contextmanager
    def scoped(self, new_scope: Any) -> Iterator[Repository]:
        yield self.narrowed(new_scope)

    # building blocks for finders

    def model(self, record: Any) -> Any:
        return self.model_class(**self.record_to_hash(record))

    def list(self, source: Any) -> List:
        return self.list_class(
            source,
            model_class=self.model_class,
            record_to_hash=self.record_to_hash,
            default_order=self.default_order,
        )

    models = list

    def transaction(self, block: Callable[[], Any]) -> Result[Any]:
        """Run block in a new savepoint, rolled back when it returns a Failure or raises Rollback."""
        savepoint = self.scope.transaction()
        try:
            result = to_result(block())
        except Rollback as rollback:
            savepoint.rollback()
            logger.debug("%r: transaction rolled back", self)
            return Failure(rollback, Errors.from_message(str(rollback) or "rolled back"))
        except BaseException:
            savepoint.rollback()
            raise
        if result.is_failure:
            savepoint.rollback()
            logger.debug("%r: transaction rolled back on %s", self, result.errors.messages)
        else:
            savepoint.commit()
        return result

    def rollback(self) -> None:
        raise Rollback()

    def to_result(self, block: Callable[[], Any], *, input: Any = None, transaction: bool = False) -> Result[Any]:
        """Run block, turning handled exceptions into Failures.

        When input is an input-like object the failure's errors are transplanted onto it,
        and the input is the failure.
        """
        handlers = type(self).config.exception_handlers
        if transaction:
            result = self.transaction(lambda: handlers.wrap(block))
        else:
            result = handlers.wrap(block)
        if result.is_success or not _input_like(input):
            return result
        input.errors = result.errors
        return Failure.of(input)

    def model_result(self, block: Callable[[], Any], *, input: Any = None, transaction: bool = False) -> Result[Any]:
        """Like to_result, with a successful record turned into a model."""

        def block_model() -> Any:
            value = block()
            return value.and_then(self.model) if isinstance(value, Result) else self.model(value)

        return self.to_result(block_model, input=input, transaction=transaction)

    # RepositoryInterface

    def find(self, pk: Any = ..., *, by: Any = None) -> Result[Any]:
        if (pk is ...) == (by is None):
            raise ConfigurationError("find takes exactly one of a primary key or by=")
        if by is None:
            return self.model_result(lambda: self.scope.find(pk))
        return self.model_result(lambda: self.scope.find_by(**to_attributes(by)))

    def all(self) -> List:
        return self.list(self.scope)

    def create(self, input: Any) -> Result[Any]:
        return self.model_result(lambda: self.scope.create(**to_attributes(input)), input=input, transaction=True)

    def update(self, pk: Any, input: Any) -> Result[Any]:
        def update_record() -> Any:
            record = self.scope.find(pk)
            return self.scope.save(_assign(record, to_attributes(input)))

        return self.model_result(update_record, input=input, transaction=True)

    def upsert(self, *, by: Any, input: Any = None) -> Result[Any]:
        def upsert_record() -> Any:
            record = self.scope.find_or_initialize_by(**to_attributes(by))
            if input is not None:
                _assign(record, to_attributes(input))
            return self.scope.save(record)

        return self.model_result(upsert_record, input=input, transaction=True)

    def destroy(self, pk: Any) -> Result[Any]:
        def destroy_record() -> Any:
            record = self.scope.find(pk)
            model = self.model(record)
            self.scope.destroy(record)
            return model

        return self.to_result(destroy_record, transaction=True)

    def __repr__(self) -> str:
        name = type(self).__name__
        return f"{name}.with_({self.with_spec.arguments()})" if self.with_spec else name
