"""Per-repository-class configuration.

Every Repository subclass gets its own Config, derived from its parent's and then
adjusted by the subclass's ``configure`` classmethod::

    class UserRepository(Repository):
        @classmethod
        def configure(cls, config: Config) -> None:
            config.attributes(except_=("password_digest",))
            config.default_order("name")
            config.optional("post_count", lambda record: len(record.posts))
            config.optional_list("posts")

Once ``configure`` has run the config is frozen.  Instances then compile what they need
for their ``with_`` selection: a record projector and a query scope.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import Any

from sqlalchemy.orm import object_session, selectinload

from repokit.domain.callables import arity
from repokit.domain.exceptions import ConfigurationError
from repokit.domain.lookup import ClassLookup, class_path
from repokit.domain.naming import camelize, deconstantize, singularize
from repokit.domain.unloaded import Unloaded

from .exceptions import ExceptionHandlers, Handler, Matcher
from .ordering import parse_order
from .to_hash import RecordToHash

Loader = Callable[..., Any]

_UNSET: Any = object()


class WithSpec:
    """The optional bundles requested from a repository, with nested selections.

    ``WithSpec.parse("author", "tags", posts=("comments",))`` selects author and tags,
    and posts with their comments.  Equality ignores order, so it can key caches.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Mapping[str, WithSpec] | None = None) -> None:
        self._items: dict[str, WithSpec] = dict(items or {})

    @classmethod
    def parse(cls, *keys: Any, **nested: Any) -> WithSpec:
        spec = cls()
        for key in keys:
            spec = spec.merge(cls._coerce(key))
        for key, value in nested.items():
            spec = spec.merge(cls({key: cls._coerce(value)}))
        return spec

    @classmethod
    def _coerce(cls, value: Any) -> WithSpec:
        if value is None or value is True:
            return EMPTY
        if isinstance(value, WithSpec):
            return value
        if isinstance(value, str):
            return cls({value: EMPTY})
        if isinstance(value, Mapping):
            return cls({str(k): cls._coerce(v) for k, v in value.items()})
        if isinstance(value, Iterable):
            return cls.parse(*value)
        raise ConfigurationError(f"Can't select optional bundles with {value!r}")

    @property
    def keys(self) -> tuple[str, ...]:
        return tuple(self._items)

    def nested(self, key: str) -> WithSpec:
        return self._items.get(key, EMPTY)

    def merge(self, other: WithSpec) -> WithSpec:
        items = dict(self._items)
        for key, nested in other._items.items():
            items[key] = items[key].merge(nested) if key in items else nested
        return WithSpec(items)

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, WithSpec) and self._items == other._items

    def __hash__(self) -> int:
        return hash(frozenset(self._items.items()))

    def arguments(self) -> str:
        parts = []
        for key, nested in self._items.items():
            parts.append(f"{key}=({nested.arguments()},)" if nested else repr(key))
        return ", ".join(parts)

    def __repr__(self) -> str:
        return f"WithSpec.parse({self.arguments()})"


EMPTY = WithSpec()


def _loader(value: Any) -> Loader:
    if isinstance(value, str):
        return lambda record: getattr(record, value)
    if callable(value):
        return value
    raise ConfigurationError(f"Loader must be an attribute name or a callable, got {value!r}")


def _bind_nested(loader: Loader, nested: WithSpec) -> Loader:
    return lambda record: loader(record, nested)


def _loaders(attributes: Any) -> dict[str, Loader]:
    if isinstance(attributes, Mapping):
        return {str(name): _loader(loader) for name, loader in attributes.items()}
    if isinstance(attributes, str):
        attributes = (attributes,)
    return {str(name): _loader(name) for name in attributes}


class Config:
    def __init__(self, owner: Any = None) -> None:
        self.owner = owner
        self.only_attributes: tuple[str, ...] | None = None
        self.except_attributes: tuple[str, ...] | None = None
        self.always_attributes: list[str] = []
        self.optional_attributes: dict[str, dict[str, Loader]] = {}
        self.optional_scopes: dict[str, Any] = {}
        self.exception_handlers = ExceptionHandlers.defaults()
        self._default_order: dict[str, str] | None = None
        self.frozen = False

    def derive(self, owner: Any = None) -> Config:
        """An unfrozen copy for a subclass; changes to it never reach this config."""
        config = Config(owner if owner is not None else self.owner)
        config.only_attributes = self.only_attributes
        config.except_attributes = self.except_attributes
        config.always_attributes = list(self.always_attributes)
        config.optional_attributes = {name: dict(loaders) for name, loaders in self.optional_attributes.items()}
        config.optional_scopes = dict(self.optional_scopes)
        config.exception_handlers = self.exception_handlers.copy()
        config._default_order = dict(self._default_order) if self._default_order is not None else None
        return config

    def freeze(self) -> Config:
        self.frozen = True
        return self

    def _check_mutable(self) -> None:
        if self.frozen:
            raise ConfigurationError(f"Config of {getattr(self.owner, '__name__', self.owner)} is frozen")

    # builder

    def attributes(self, *, only: Any = _UNSET, except_: Any = _UNSET) -> None:
        self._check_mutable()
        if only is not _UNSET and except_ is not _UNSET and only is not None and except_ is not None:
            raise ConfigurationError("can't set both only and except_")
        new_only = self.only_attributes if only is _UNSET else only
        new_except = self.except_attributes if except_ is _UNSET else except_
        if new_only is not None and new_except is not None:
            raise ConfigurationError("can't set both only and except_ (clear one with None)")
        self.only_attributes = None if new_only is None else tuple([new_only] if isinstance(new_only, str) else new_only)
        self.except_attributes = (
            None if new_except is None else tuple([new_except] if isinstance(new_except, str) else new_except)
        )

    def always(self, *names: str) -> None:
        self._check_mutable()
        for name in names:
            if name not in self.always_attributes:
                self.always_attributes.append(name)

    def optional(self, name: str, loader: Any = None, *, attributes: Any = None, scope: Any = None) -> None:
        """Declare a named bundle of attributes loaded only when selected with ``with_``.

        ``loader`` (an attribute name, or a callable given nothing, the record, or the record
        and the nested selection) loads the attribute ``name``.  ``attributes`` declares several
        attributes at once.  ``scope`` adjusts the query while the bundle is selected.
        """
        self._check_mutable()
        if attributes is None:
            attributes = {name: loader if loader is not None else name}
        loaders = _loaders(attributes)
        self.always(*loaders)
        self.optional_attributes[name] = loaders
        if scope is not None:
            self.optional_scopes[name] = scope

    def optional_model(self, name: str, attribute: Any = None, repository: Any = None, scope: Any = None) -> None:
        """Optional associated model, loaded through its own repository (``<Name>Repository``)."""
        self._optional_association("model", name, name, attribute, repository, scope)

    def optional_list(self, name: str, attribute: Any = None, repository: Any = None, scope: Any = None) -> None:
        """Optional list of associated models, loaded through ``<SingularName>Repository``."""
        self._optional_association("list", name, singularize(name), attribute, repository, scope)

    optional_models = optional_list

    def _optional_association(
        self, method: str, name: str, singular: str, attribute: Any, repository: Any, scope: Any
    ) -> None:
        if repository is None:
            lookup = self._repository_lookup(singular)
        else:
            lookup = ClassLookup(repository) if isinstance(repository, str) else repository

        def load(record: Any, nested: WithSpec) -> Any:
            repository_class = lookup() if isinstance(lookup, ClassLookup) else lookup
            repo = repository_class(object_session(record)).with_(nested)
            value = getattr(record, name)
            if method == "model":
                return repo.model(value) if value is not None else None
            return repo.list(list(value)).to_list()

        def eager_load(base: Any) -> Any:
            return base.options(selectinload(getattr(base.record_class, name)))

        self.optional(name, attribute if attribute is not None else load, scope=scope if scope is not None else eager_load)

    def _repository_lookup(self, singular: str) -> ClassLookup:
        namespace = deconstantize(class_path(self.owner)) if isinstance(self.owner, type) else ""
        camel = camelize(singular)
        names = [f"{camel}Repository", f"{camel}Repo"]
        scoped = [f"{namespace}.{n}" for n in names] if namespace else []
        return ClassLookup(*scoped, *names)

    def default_order(self, *args: Any, **kwargs: Any) -> dict[str, str] | None:
        if args or kwargs:
            self._check_mutable()
            self._default_order = parse_order(*args, **kwargs)
        return self._default_order

    def exception(self, matcher: Matcher, handler: Handler) -> None:
        self._check_mutable()
        self.exception_handlers.add(matcher, handler)

    # compilation

    def assert_optional(self, with_: Any) -> WithSpec:
        spec = with_ if isinstance(with_, WithSpec) else WithSpec.parse(with_)
        unknown = [key for key in spec if key not in self.optional_attributes]
        if unknown:
            raise ConfigurationError(
                f"unknown option(s): {', '.join(unknown)} (not in: {list(self.optional_attributes)})"
            )
        return spec

    def _extra_attributes(self, with_: WithSpec) -> dict[str, Loader]:
        extra: dict[str, Loader] = {}
        for key in with_:
            for attribute, loader in self.optional_attributes.get(key, {}).items():
                extra[attribute] = _bind_nested(loader, with_.nested(key)) if arity(loader) == 2 else loader
        return extra

    def record_to_hash(self, model_class: Any, with_: WithSpec = EMPTY) -> RecordToHash:
        return RecordToHash(
            only=self.only_attributes,
            except_=self.except_attributes,
            always=self.always_attributes,
            extra=self._extra_attributes(with_),
            on_missing=lambda attribute: Unloaded(model_class, attribute),
        )

    def scope(self, base_scope: Any, with_: WithSpec = EMPTY, owner: Any = None) -> Any:
        owner = owner if owner is not None else self.owner
        scope = base_scope
        for key, apply in self.optional_scopes.items():
            if key not in with_:
                continue
            if isinstance(apply, str):
                scope = getattr(owner, apply)(scope)
            elif arity(apply) == 2:
                scope = apply(scope, with_.nested(key))
            else:
                scope = apply(scope)
        return scope
