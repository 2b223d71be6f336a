"""Input base classes: mutable, validatable attribute holders used for writes.

Declare attributes with annotations, using Pydantic types and ``Field`` constraints::

    class UserInput(Input):
        email: str = Field(pattern=r".+@.+")
        name: str | None = None

Unlike a Model, an Input can hold invalid data (it is what a form re-renders).  Its
structured attributes are only available once it is valid: ``to_hash()``, ``input[key]``
and ``**input`` raise ``InvalidAttributesError`` otherwise.  ``attributes_hash()`` gives
the raw values.

Errors found while persisting can be transplanted onto an input (``input.errors = ...``);
it then stays invalid until one of its attributes changes.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any, ClassVar, get_origin, get_type_hints

from pydantic import BaseModel, ConfigDict, ValidationError, create_model
from pydantic.fields import FieldInfo

from .errors import BASE, Errors
from .exceptions import InvalidAttributesError
from .lookup import INPUT, registry

_REQUIRED = ...


class InputAttribute:
    """Descriptor for one declared input attribute."""

    def __init__(self, name: str, default: Any) -> None:
        self.name = name
        self.default = default

    def default_value(self) -> Any:
        if isinstance(self.default, FieldInfo):
            if self.default.default_factory is not None:
                return self.default.default_factory()  # type: ignore[call-arg]
            return None if self.default.is_required() else self.default.default
        return None if self.default is _REQUIRED else self.default

    def __get__(self, instance: Input | None, owner: type) -> Any:
        if instance is None:
            return self
        if self.name in instance._attributes:
            return instance._attributes[self.name]
        return self.default_value()

    def __set__(self, instance: Input, value: Any) -> None:
        instance._attributes[self.name] = value
        instance._changed()


def _pydantic_errors(error: ValidationError, errors: Errors) -> None:
    for problem in error.errors():
        attribute = str(problem["loc"][0]) if problem["loc"] else BASE
        if problem["type"] == "missing" or problem.get("input", "") is None:
            errors.add(attribute, "blank")
        else:
            errors.add(attribute, "invalid", message=problem["msg"])


class Input:
    class_kind: ClassVar[str] = INPUT
    schema: ClassVar[type[BaseModel] | None] = None
    attribute_names: ClassVar[tuple[str, ...]] = ()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        registry.register(cls)

        fields: dict[str, tuple[Any, Any]] = {}
        for name, hint in get_type_hints(cls, localns=dict(vars(cls))).items():
            if name.startswith("_") or get_origin(hint) is ClassVar:
                continue
            declared = inspect_static(cls, name)
            if isinstance(declared, InputAttribute):
                default = declared.default
            else:
                default = declared
                setattr(cls, name, InputAttribute(name, default))
            fields[name] = (hint, default)

        cls.attribute_names = tuple(fields)
        if fields:
            cls.schema = create_model(
                f"{cls.__name__}Schema",
                __config__=ConfigDict(extra="ignore", arbitrary_types_allowed=True),
                __module__=cls.__module__,
                **fields,
            )

    def __init__(self, **attributes: Any) -> None:
        self._attributes: dict[str, Any] = {}
        self._errors = Errors()
        self._transplanted: Errors | None = None
        self._validated: dict[str, Any] | None = None
        for name, value in attributes.items():
            if name in self.attribute_names:
                self._attributes[name] = value

    def _changed(self) -> None:
        self._transplanted = None
        self._validated = None

    def _names(self) -> tuple[str, ...]:
        return self.attribute_names

    def _validate_attributes(self, errors: Errors) -> dict[str, Any]:
        if self.schema is None:
            return dict(self._attributes)
        try:
            validated = self.schema.model_validate(self._attributes)
        except ValidationError as e:
            _pydantic_errors(e, errors)
            return {}
        return {name: getattr(validated, name) for name in self.attribute_names}

    def validate(self, errors: Errors) -> None:
        """Hook for rules beyond the declared types; add problems to errors."""

    def valid(self) -> bool:
        errors = Errors()
        validated = self._validate_attributes(errors)
        if not errors:
            self.validate(errors)
        if self._transplanted:
            errors.merge(self._transplanted)
        self._errors = errors
        self._validated = None if errors else validated
        return not errors

    def invalid(self) -> bool:
        return not self.valid()

    @property
    def errors(self) -> Errors:
        return self._errors

    @errors.setter
    def errors(self, errors: Errors) -> None:
        self._transplanted = errors.copy()
        self._errors = errors.copy()
        self._validated = None

    def to_hash(self) -> dict[str, Any]:
        if not self.valid():
            raise InvalidAttributesError(
                f"{type(self).__name__} is invalid: {'; '.join(self._errors.full_messages)}"
            )
        return dict(self._validated or {})

    @property
    def attributes(self) -> dict[str, Any]:
        return self.to_hash()

    def attributes_hash(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in self._names()}

    def keys(self) -> list[str]:
        return list(self._names())

    def __getitem__(self, name: str) -> Any:
        return self.to_hash()[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._names())

    def with_attributes(self, **attributes: Any) -> InputWithAttributes:
        return InputWithAttributes(self, **attributes)

    def with_model(self, model: Any) -> InputWithModel:
        return InputWithModel(self, model)

    def to_input(self) -> Input:
        return self

    @property
    def persisted(self) -> bool:
        return False

    def __repr__(self) -> str:
        attrs = ", ".join(f"{k}={v!r}" for k, v in self.attributes_hash().items())
        return f"{type(self).__name__}({attrs})"


def inspect_static(cls: type, name: str) -> Any:
    for klass in cls.__mro__:
        if name in klass.__dict__:
            return klass.__dict__[name]
    return _REQUIRED


class OpenInput(Input):
    """Input accepting arbitrary attributes, valid unless errors were transplanted onto it."""

    def __init__(self, **attributes: Any) -> None:
        super().__init__()
        self._attributes.update(attributes)

    def _names(self) -> tuple[str, ...]:
        return tuple(self._attributes)

    def __getattr__(self, name: str) -> Any:
        attributes = self.__dict__.get("_attributes", {})
        if name in attributes:
            return attributes[name]
        raise AttributeError(f"{type(self).__name__} has no attribute {name!r}")


class InputWithAttributes:
    """An input decorated with extra, non-input attributes for a repository write::

    posts.create(post_input.with_attributes(user_id=user.id))
    """

    def __init__(self, input: Input, **attributes: Any) -> None:
        self.input = input
        self.extra = attributes

    def with_attributes(self, **attributes: Any) -> InputWithAttributes:
        return InputWithAttributes(self.input, **{**self.extra, **attributes})

    def to_hash(self) -> dict[str, Any]:
        return {**self.input.to_hash(), **self.extra}

    @property
    def attributes(self) -> dict[str, Any]:
        return self.to_hash()

    def keys(self) -> list[str]:
        return [*self.input.keys(), *(k for k in self.extra if k not in self.input.keys())]

    def __getitem__(self, name: str) -> Any:
        return self.to_hash()[name]

    def valid(self) -> bool:
        return self.input.valid()

    @property
    def errors(self) -> Errors:
        return self.input.errors

    @errors.setter
    def errors(self, errors: Errors) -> None:
        self.input.errors = errors

    def to_input(self) -> Input:
        return self.input

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__") or name in ("input", "extra"):
            raise AttributeError(name)
        return getattr(self.input, name)


class InputWithModel:
    """An input paired with the model it edits, so a failed update can re-render both::

        result = users.update(user.id, user_input.with_model(user))
        if result.is_failure:
            form = result.failure        # form.input, form.model, form.errors
    """

    def __init__(self, input: Input, model: Any) -> None:
        self.input = input
        self.model = model

    def valid(self) -> bool:
        return self.input.valid()

    @property
    def errors(self) -> Errors:
        return self.input.errors

    @errors.setter
    def errors(self, errors: Errors) -> None:
        self.input.errors = errors

    def to_input(self) -> Input:
        return self.input.to_input()

    def to_hash(self) -> dict[str, Any]:
        return self.input.to_hash()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.input!r}, {self.model!r})"


def to_attributes(value: Any) -> dict[str, Any]:
    """Attributes for a write, from an input, a model, or a mapping."""
    if isinstance(value, (Input, InputWithAttributes)):
        return value.to_hash()
    if isinstance(value, Mapping):
        return dict(value)
    to_hash = getattr(value, "to_hash", None)
    if to_hash is not None:
        return dict(to_hash())
    raise TypeError(f"Cannot use {type(value).__name__} as attributes")
