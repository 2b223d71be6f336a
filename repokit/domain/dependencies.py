"""Late-binding class dependencies with defaults, overridable per instance.

Declare dependencies in a class body with ``dependency(default)``.  A default is resolved
against the class the first time it is read, and memoized on that class:

- a class is used as is,
- a lookup reference (``ClassLookup``, ``Association``) is resolved with the class as source,
- a zero-arg callable is called,
- a one-arg callable is called with the class,
- anything else is a literal value.

Combined with ``repokit.domain.lookup`` this is how conventionally named classes find
each other::

    class UserRepository(Repository):
        record_class = dependency(Association("record"))    # UserRecord
        list_class = dependency(UserList)

    UserRepository(session, list_class=OtherList)          # per-instance override
"""

from __future__ import annotations

from typing import Any

from .callables import arity
from .lookup import LookupReference


def resolve_default(default: Any, context: Any) -> Any:
    if isinstance(default, type):
        return default
    if isinstance(default, LookupReference):
        return default.resolve(context)
    if callable(default):
        n = arity(default)
        if n == 0:
            return default()
        if n in (1, -1):
            return default(context)
    return default


class DependencyContainer:
    """Ordered mapping of dependency keys to their unresolved defaults."""

    def __init__(self, defaults: dict[str, Any] | None = None) -> None:
        self._defaults: dict[str, Any] = dict(defaults or {})

    @property
    def keys(self) -> list[str]:
        return list(self._defaults)

    def __contains__(self, key: object) -> bool:
        return key in self._defaults

    def add(self, key: str, default: Any) -> None:
        self._defaults[key] = default

    def copy(self) -> DependencyContainer:
        return DependencyContainer(self._defaults)

    def resolve(self, context: Any, key: str) -> Any:
        return resolve_default(self._defaults[key], context)

    def resolve_all(self, context: Any) -> dict[str, Any]:
        return {key: self.resolve(context, key) for key in self._defaults}


def _own_container(owner: type) -> DependencyContainer:
    # __set_name__ runs before __init_subclass__, so the copy may happen in either
    if "_dependencies" not in owner.__dict__:
        inherited = getattr(owner, "_dependencies", None)
        owner._dependencies = inherited.copy() if inherited is not None else DependencyContainer()
        owner._resolved_dependencies = {}
    return owner._dependencies


class Dependency:
    """Descriptor giving a dependency a class reader and (unless class_only) an instance reader."""

    def __init__(self, default: Any, *, class_only: bool = False) -> None:
        self.default = default
        self.class_only = class_only
        self.name = ""

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name
        _own_container(owner).add(name, self.default)

    def __get__(self, instance: Any, owner: type) -> Any:
        if instance is None:
            return owner.resolve_dependency(self.name)
        if self.class_only:
            raise AttributeError(f"{self.name} is a class-only dependency of {owner.__name__}")
        overrides = instance.__dict__.get("_dependency_overrides", {})
        if self.name in overrides:
            return overrides[self.name]
        return owner.resolve_dependency(self.name)


def dependency(default: Any, *, class_only: bool = False) -> Any:
    return Dependency(default, class_only=class_only)


class Dependencies:
    """Mixin holding a class's dependency container.

    Keyword arguments named after an instance-readable dependency override it for the
    instance; any other keyword is an error.
    """

    _dependencies: DependencyContainer = DependencyContainer()
    _resolved_dependencies: dict[str, Any] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        _own_container(cls)

    def __init__(self, **overrides: Any) -> None:
        allowed = self.overridable_dependencies()
        unknown = [key for key in overrides if key not in allowed]
        if unknown:
            raise TypeError(
                f"unknown keyword: {', '.join(unknown)} "
                f"(overridable dependencies are: {', '.join(allowed)})"
            )
        self.__dict__["_dependency_overrides"] = overrides
        super().__init__()

    @classmethod
    def dependencies(cls) -> DependencyContainer:
        return cls._dependencies

    @classmethod
    def resolve_dependency(cls, key: str) -> Any:
        _own_container(cls)
        resolved = cls.__dict__["_resolved_dependencies"]
        if key not in resolved:
            resolved[key] = cls._dependencies.resolve(cls, key)
        return resolved[key]

    @classmethod
    def overridable_dependencies(cls) -> list[str]:
        return [key for key in cls._dependencies.keys if _is_instance_readable(cls, key)]


def _is_instance_readable(cls: type, key: str) -> bool:
    for klass in cls.__mro__:
        attr = klass.__dict__.get(key)
        if isinstance(attr, Dependency):
            return not attr.class_only
    return False
