"""repokit: repositories returning immutable models and Results over SQLAlchemy."""

from repokit.domain.dependencies import Dependencies, dependency
from repokit.domain.errors import Errors
from repokit.domain.exceptions import (
    ClassNotFoundError,
    ConfigurationError,
    FailureError,
    FrozenRepositoryError,
    InvalidAttributesError,
    Rollback,
    UnloadedAttributeError,
)
from repokit.domain.input import Input, InputWithModel, OpenInput
from repokit.domain.lookup import Association, ClassLookup, MissingClass, associated_class
from repokit.domain.models import Loadable, Model, PersistedModel, Unloaded, is_loaded
from repokit.domain.result import Failure, Result, Success
from repokit.infrastructure.persistence import (
    ArrayList,
    Config,
    List,
    Record,
    RecordNotFound,
    Repository,
    Scope,
    WithSpec,
)

__all__ = [
    "ArrayList",
    "Association",
    "ClassLookup",
    "ClassNotFoundError",
    "Config",
    "ConfigurationError",
    "Dependencies",
    "Errors",
    "Failure",
    "FailureError",
    "FrozenRepositoryError",
    "Input",
    "InputWithModel",
    "InvalidAttributesError",
    "List",
    "Loadable",
    "MissingClass",
    "Model",
    "OpenInput",
    "PersistedModel",
    "Record",
    "RecordNotFound",
    "Repository",
    "Result",
    "Rollback",
    "Scope",
    "Success",
    "Unloaded",
    "UnloadedAttributeError",
    "WithSpec",
    "associated_class",
    "dependency",
    "is_loaded",
]
