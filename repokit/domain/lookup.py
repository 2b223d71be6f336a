"""Convention-based class association.

A Model named ``User`` is associated with ``UserRecord``, ``UserInput`` and
``UserRepository`` (or ``UserRepo``).  Classes register themselves in an explicit
``ClassRegistry`` when they are defined; the naming convention is layered on top of the
registry and any class may declare overrides (``class_base_name``, ``<kind>_class``).

When a conventional class cannot be found, a ``MissingClass`` is returned instead of
raising.  It can still be used as the source for further lookups, and only raises
``ClassNotFoundError`` when it is actually used as a class.

Derived associations are memoized per (source, kind) for the life of the process.  A class
defined after its lookup failed is therefore not picked up: the cached MissingClass keeps
being returned.
"""

from __future__ import annotations

import importlib
import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, Union

from .callables import arity
from .exceptions import ClassNotFoundError, ConfigurationError
from .naming import camelize, deconstantize, demodulize, strip_suffix

logger = logging.getLogger(__name__)

MODEL = "model"
RECORD = "record"
INPUT = "input"
REPOSITORY = "repository"

_NO_SOURCE = object()


def class_path(klass: type) -> str:
    return f"{klass.__module__}.{klass.__qualname__}"


class MissingClass:
    """Stands in for a conventional class that does not exist."""

    def __init__(self, *class_names: str, base_name: str | None = None, kind: str | None = None) -> None:
        self.class_names = tuple(class_names)
        self.base_name = base_name
        self.kind = kind

    @property
    def class_name(self) -> str:
        return self.class_names[-1] if self.class_names else ""

    @property
    def also_tried(self) -> tuple[str, ...]:
        return self.class_names[:-1]

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__"):
            raise AttributeError(name)
        raise ClassNotFoundError(self)

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        raise ClassNotFoundError(self)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, MissingClass) and self.class_names == other.class_names

    def __hash__(self) -> int:
        return hash((MissingClass, self.class_names))

    def __str__(self) -> str:
        return self.class_name

    def __repr__(self) -> str:
        also = f" (also tried: {', '.join(self.also_tried)})" if self.also_tried else ""
        return f"<Missing class: {self.class_name}{also}>"


ClassOrMissing = Union[type, MissingClass]


class ClassRegistry:
    """Explicit registry of the classes taking part in the naming convention.

    Classes are found by their full path (``module.QualName``), a bare name by the one
    registered class carrying it, and a dotted path by importing its module part.  A dotted
    path never matches a same-named class registered under another module.
    """

    def __init__(self) -> None:
        self._by_path: dict[str, type] = {}
        self._by_name: dict[str, dict[str, type]] = {}
        self._kinds: dict[type, str] = {}
        self._lock = threading.Lock()

    def register(self, klass: type, kind: str | None = None) -> type:
        path = class_path(klass)
        with self._lock:
            self._by_path[path] = klass
            self._by_name.setdefault(klass.__name__, {})[path] = klass
            if kind is not None:
                self._kinds[klass] = kind
        return klass

    def kind_of(self, klass: type) -> str | None:
        return self._kinds.get(klass) or getattr(klass, "class_kind", None)

    def __contains__(self, klass: object) -> bool:
        return isinstance(klass, type) and self._by_path.get(class_path(klass)) is klass

    def resolve(self, name: str) -> type:
        if name in self._by_path:
            return self._by_path[name]

        if "." not in name:
            candidates = self._by_name.get(name, {})
            if len(candidates) == 1:
                return next(iter(candidates.values()))
            if len(candidates) > 1:
                logger.warning("Class name %s is ambiguous: %s", name, ", ".join(sorted(candidates)))

        return self._import(name)

    @staticmethod
    def _import(name: str) -> type:
        parts = name.split(".")
        for i in range(len(parts) - 1, 0, -1):
            try:
                found: Any = importlib.import_module(".".join(parts[:i]))
            except ImportError:
                continue
            try:
                for attr in parts[i:]:
                    found = getattr(found, attr)
            except AttributeError:
                break
            if isinstance(found, type):
                return found
            break
        raise LookupError(f"Could not find class {name}")


registry = ClassRegistry()


class LookupReference(ABC):
    """A lookup that is resolved later, given the object it is declared on."""

    @abstractmethod
    def resolve(self, source: Any) -> ClassOrMissing: ...


class ClassLookup(LookupReference):
    """Look up a class by transforming a source class name, with fallbacks.

    Each lookup is a class, a class name, a zero-arg callable, or a one-arg callable
    given the source's class name::

        ClassLookup(lambda name: name + "Record").on_missing(lambda name: "Record")(User)

    Lookups are tried in order; if none finds a class a MissingClass recording every
    attempted name is returned.
    """

    def __init__(self, *lookups: Any) -> None:
        if not lookups:
            raise ConfigurationError("No lookups provided")
        self._lookups = list(lookups)
        self._source: Any = _NO_SOURCE

    def source(self, source: Any) -> ClassLookup:
        self._source = source
        return self

    def on_missing(self, lookup: Any) -> ClassLookup:
        self._lookups.append(lookup)
        return self

    def resolve(self, source: Any) -> ClassOrMissing:
        return self(source)

    def __call__(self, source: Any = _NO_SOURCE) -> ClassOrMissing:
        if source is _NO_SOURCE:
            source = self._source

        attempted: list[str] = []
        for lookup in self._lookups:
            try:
                found = self._run(lookup, source)
            except NameError as e:
                attempted.append(getattr(e, "name", None) or str(e))
                continue
            if isinstance(found, type):
                return found
            if isinstance(found, MissingClass):
                attempted.extend(found.class_names)
                continue
            try:
                return registry.resolve(str(found))
            except LookupError:
                attempted.append(str(found))

        logger.debug("Class lookup found nothing, tried: %s", ", ".join(attempted))
        return MissingClass(*attempted)

    @staticmethod
    def _run(lookup: Any, source: Any) -> Any:
        if isinstance(lookup, (str, type, MissingClass)):
            return lookup
        if arity(lookup) == 0:
            return lookup()
        if source is _NO_SOURCE:
            raise ConfigurationError(f"source required for lookup: {lookup!r}")
        return lookup(source_name(source))


def source_name(source: Any) -> str:
    if isinstance(source, str):
        return source
    if isinstance(source, MissingClass):
        return source.class_name
    if not isinstance(source, type):
        source = type(source)
    return class_path(source)


def _kind_suffixes(source: type) -> tuple[str, ...]:
    suffixes = getattr(source, "class_suffixes", None)
    if suffixes is not None:
        return tuple(suffixes)
    kind = registry.kind_of(source)
    return (camelize(kind),) if kind and kind != MODEL else ()


def base_name(source: Any) -> str:
    """The path a class's associated classes are derived from: ``app.UserRepo`` -> ``app.User``."""
    if isinstance(source, MissingClass):
        return source.base_name or source.class_name
    if isinstance(source, str):
        return source
    if not isinstance(source, type):
        source = type(source)

    declared = getattr(source, "class_base_name", None)
    if declared:
        return str(declared)
    path = class_path(source)
    return deconstantize(path) + "." + strip_suffix(demodulize(path), *_kind_suffixes(source))


def target_names(base: str, kind: str) -> tuple[str, ...]:
    if kind == MODEL:
        return (base,)
    if kind == REPOSITORY:
        return (f"{base}Repository", f"{base}Repo")
    return (f"{base}{camelize(kind)}",)


def _first_resolved(names: tuple[str, ...]) -> type | None:
    for name in names:
        try:
            return registry.resolve(name)
        except LookupError:
            continue
    return None


_conventional: dict[tuple[Any, str], ClassOrMissing] = {}
_conventional_lock = threading.Lock()


def conventional_class(source: Any, kind: str) -> ClassOrMissing:
    """Derive the class of ``kind`` associated with source by naming convention (memoized)."""
    if not isinstance(source, (type, str, MissingClass)):
        source = type(source)
    key = (source, kind)
    try:
        return _conventional[key]
    except KeyError:
        pass

    with _conventional_lock:
        if key not in _conventional:
            base = base_name(source)
            names = target_names(base, kind)
            found = _first_resolved(names)
            if found is None:
                logger.debug("No %s class %s for %s", kind, " or ".join(names), source_name(source))
                found = MissingClass(*names, base_name=base, kind=kind)
            _conventional[key] = found
        return _conventional[key]


def associated_class(source: Any, kind: str) -> ClassOrMissing:
    """Resolve the class of ``kind`` associated with source.

    A class that already is of ``kind`` is returned unchanged, an explicit
    ``<kind>_class`` accessor wins over the naming convention.
    """
    klass = source if isinstance(source, (type, MissingClass, str)) else type(source)
    if isinstance(klass, type) and registry.kind_of(klass) == kind:
        return klass

    if not isinstance(source, (MissingClass, str)):
        accessor = getattr(source, f"{kind}_class", None)
        if accessor is not None:
            return accessor

    return conventional_class(klass, kind)


class Association(LookupReference):
    """Dependency default for the class associated with the owner by naming convention."""

    def __init__(self, kind: str) -> None:
        self.kind = kind

    def resolve(self, source: Any) -> ClassOrMissing:
        return conventional_class(source, self.kind)

    def __repr__(self) -> str:
        return f"Association({self.kind!r})"
