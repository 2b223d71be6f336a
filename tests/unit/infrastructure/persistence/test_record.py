"""Tests for repokit/infrastructure/persistence/record.py."""

import pytest

from blog import PostRecord, UserRecord
from repokit.domain.lookup import RECORD, registry
from repokit.infrastructure.persistence.record import table_name_for


@pytest.mark.parametrize(
    "class_name, table",
    [
        ("FooRecord", "foos"),
        ("PersonRecord", "people"),
        ("BlogPostRecord", "blog_posts"),
        ("Category", "categories"),
    ],
)
def test_table_name_for(class_name, table):
    assert table_name_for(class_name) == table


def test_records_get_conventional_table_names():
    assert UserRecord.__tablename__ == "users"
    assert PostRecord.__table__.name == "posts"


def test_records_are_registered_as_records():
    assert UserRecord in registry
    assert registry.kind_of(UserRecord) == RECORD


def test_primary_key():
    assert UserRecord.primary_key().key == "id"


def test_to_hash_has_column_attributes_only(session, ann):
    assert ann.to_hash() == {"id": ann.id, "name": "Ann", "email": "ann@example.com"}


def test_repr_shows_columns():
    assert repr(UserRecord(name="Ann")) == "UserRecord(id=None, name='Ann', email=None)"
