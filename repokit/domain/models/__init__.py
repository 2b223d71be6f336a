"""Domain model package.

Import from this package rather than individual modules.
"""

from ..unloaded import Loadable, Unloaded, is_loaded
from .base import Model, PersistedModel

__all__ = ["Model", "PersistedModel", "Loadable", "Unloaded", "is_loaded"]
