"""Domain repository interfaces."""

from .base import RepositoryInterface

__all__ = ["RepositoryInterface"]
