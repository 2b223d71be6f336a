"""Persistence package.

SQLAlchemy-backed records, query scopes, lists and repositories.  Import from this
package rather than individual modules.
"""

from repokit.infrastructure.persistence.config import Config, WithSpec
from repokit.infrastructure.persistence.exceptions import ExceptionHandlers
from repokit.infrastructure.persistence.list import ArrayList, List
from repokit.infrastructure.persistence.ordering import parse_order, reverse_order, sort_records
from repokit.infrastructure.persistence.record import Record
from repokit.infrastructure.persistence.repository import Repository
from repokit.infrastructure.persistence.scope import RecordNotFound, Scope
from repokit.infrastructure.persistence.to_hash import RecordToHash

__all__ = [
    "ArrayList",
    "Config",
    "ExceptionHandlers",
    "List",
    "Record",
    "RecordNotFound",
    "RecordToHash",
    "Repository",
    "Scope",
    "WithSpec",
    "parse_order",
    "reverse_order",
    "sort_records",
]
