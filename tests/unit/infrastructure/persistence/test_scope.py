"""Tests for repokit/infrastructure/persistence/scope.py against in-memory sqlite."""

import pytest
from sqlalchemy.orm import selectinload

from blog import PostRecord, UserRecord
from repokit.infrastructure.persistence.scope import RecordNotFound, Scope


@pytest.fixture
def titled(session, ann, bob):
    for user, title, rank in [(ann, "b", 2), (ann, "a", None), (bob, "c", 1)]:
        session.add(PostRecord(user_id=user.id, title=title, rank=rank))
    session.flush()
    return Scope(session, PostRecord)


def test_records_and_count(titled):
    assert titled.count() == 3
    assert len(titled.records()) == 3
    assert titled.exists()


def test_where_with_keywords_and_lists(titled, ann):
    assert titled.where(user_id=ann.id).count() == 2
    assert titled.where(title=["a", "c"]).count() == 2
    assert titled.where(PostRecord.rank.is_(None)).pluck("title") == ["a"]


def test_refinement_returns_new_scopes(titled):
    ordered = titled.order("title")
    assert ordered is not titled
    assert not titled.ordered
    assert ordered.ordered


def test_order_puts_nulls_last_ascending_and_first_descending(titled):
    assert titled.order("rank").pluck("rank") == [1, 2, None]
    assert titled.order(rank="desc").pluck("rank") == [None, 2, 1]


def test_reverse_order_without_order_uses_primary_key(titled):
    assert titled.reverse_order().pluck("title") == ["c", "a", "b"]


def test_reorder_replaces_order(titled):
    assert titled.order("rank").reorder("title desc").pluck("title") == ["c", "b", "a"]


def test_limit_offset_and_count(titled):
    page = titled.order("title").offset(1).limit(1)
    assert page.pluck("title") == ["b"]
    assert page.count() == 1
    assert titled.order("title").limit(None).count() == 3


def test_pluck_several_columns_returns_tuples(titled):
    assert titled.order("title").pluck("title", "rank") == [("a", None), ("b", 2), ("c", 1)]


def test_join_and_distinct(titled, ann):
    scope = Scope(titled.session, UserRecord).join(UserRecord.posts).where(PostRecord.title.in_(["a", "b"])).distinct()
    assert scope.pluck("id") == [ann.id]


def test_find_and_find_by(titled):
    record = titled.find_by(title="c")
    assert titled.find(record.id) is record
    with pytest.raises(RecordNotFound):
        titled.find(999)
    with pytest.raises(RecordNotFound):
        titled.find_by(title="zzz")


def test_find_respects_narrowing(titled, ann):
    record = titled.find_by(title="c")
    with pytest.raises(RecordNotFound):
        titled.where(user_id=ann.id).find(record.id)


def test_find_or_initialize_by(titled, ann):
    assert titled.find_or_initialize_by(title="a").id is not None
    fresh = titled.find_or_initialize_by(title="new", user_id=ann.id)
    assert fresh.id is None
    assert fresh.title == "new"


def test_create_and_destroy(session, ann):
    scope = Scope(session, PostRecord)
    record = scope.create(user_id=ann.id, title="fresh")
    assert record.id is not None
    scope.destroy(record)
    assert not scope.exists()


def test_options_apply_loader_options(titled):
    users = Scope(titled.session, UserRecord).options(selectinload(UserRecord.posts))
    assert users.loader_options
    assert sorted(len(u.posts) for u in users) == [1, 2]


def test_transaction_is_a_savepoint(session, ann):
    scope = Scope(session, PostRecord)
    savepoint = scope.transaction()
    scope.create(user_id=ann.id, title="temp")
    savepoint.rollback()
    assert scope.count() == 0
    assert Scope(session, UserRecord).count() == 1
