"""Tests for repokit/infrastructure/persistence/repository.py against in-memory sqlite."""

import pytest
from sqlalchemy.exc import SQLAlchemyError

import blog
from blog import Post, PostRecord, User, UserInput, UserRecord, UserRepository
from repokit.domain.dependencies import dependency
from repokit.domain.exceptions import ClassNotFoundError, ConfigurationError, FrozenRepositoryError
from repokit.domain.input import OpenInput
from repokit.domain.unloaded import Unloaded
from repokit.infrastructure.persistence.config import Config
from repokit.infrastructure.persistence.list import List
from repokit.infrastructure.persistence.repository import Repository


class OrphanRepository(Repository):
    pass


class LooseRepository(Repository):
    record_class = dependency(dict)


class GuardedUserRepository(UserRepository):
    class_base_name = "blog.User"

    @classmethod
    def configure(cls, config: Config) -> None:
        config.exception(SQLAlchemyError, lambda: "database error")


class AdminRepository(UserRepository):
    class_base_name = "blog.User"

    @classmethod
    def configure(cls, config: Config) -> None:
        config.optional("shout", lambda record: record.name.upper())


# --- class conventions ---

def test_associated_classes_by_convention():
    assert UserRepository.model_class is User
    assert UserRepository.record_class is UserRecord
    assert UserRepository.input_class is UserInput
    assert UserRepository.list_class is List
    assert blog.PostRepository.list_class is blog.PostList


def test_missing_record_class_fails_on_construction(session):
    with pytest.raises(ClassNotFoundError, match="OrphanRecord"):
        OrphanRepository(session)


def test_unmapped_record_class_fails_on_construction(session):
    with pytest.raises(ConfigurationError, match="not a mapped record class"):
        LooseRepository(session)


def test_subclass_config_is_derived_not_shared():
    assert "shout" in AdminRepository.config.optional_attributes
    assert "posts" in AdminRepository.config.optional_attributes
    assert "shout" not in UserRepository.config.optional_attributes
    assert UserRepository.config.frozen


def test_dependencies_can_be_overridden_per_instance(session):
    posts = blog.PostRepository(session, list_class=List)
    assert posts.list_class is List
    assert type(posts.all()) is List


def test_repository_is_frozen(users):
    with pytest.raises(FrozenRepositoryError):
        users.session = None


def test_repr_shows_selected_optionals(users):
    assert repr(users) == "UserRepository"
    assert repr(users.with_("posts")) == "UserRepository.with_('posts')"


# --- find ---

def test_find_by_primary_key(users, ann):
    result = users.find(ann.id)
    assert result.is_success
    user = result.value
    assert isinstance(user, User)
    assert user.name == "Ann"
    assert user.posts == Unloaded(User, "posts")


def test_find_by_attributes(users, ann):
    assert users.find(by={"email": "ann@example.com"}).value.id == ann.id


def test_find_takes_exactly_one_of_pk_and_by(users):
    with pytest.raises(ConfigurationError):
        users.find()
    with pytest.raises(ConfigurationError):
        users.find(1, by={"email": "x"})


def test_find_missing_is_a_failure(users):
    result = users.find(999)
    assert result.is_failure
    assert "Couldn't find UserRecord" in result.errors.full_messages[0]


def test_subclass_broad_handler_keeps_specific_mappings(session, ann):
    users = GuardedUserRepository(session)
    assert "Couldn't find UserRecord" in users.find(999).errors.full_messages[0]
    taken = users.create(UserInput(name="Ann", email="ann@example.com"))
    assert taken.errors["email"] == ["has already been taken"]


def test_domain_finder_uses_model_result(users, ann):
    assert users.find_by_email("ann@example.com").value.id == ann.id
    assert users.find_by_email("nobody@example.com").is_failure


# --- writes ---

def test_create(users):
    result = users.create(UserInput(name="Cat", email="cat@example.com"))
    assert result.is_success
    assert result.value.persisted
    assert users.all().count() == 1


def test_create_not_null_violation_transplants_errors(users):
    input = OpenInput(name="Cat")
    result = users.create(input)
    assert result.is_failure
    assert result.failure is input
    assert result.errors["email"] == ["can't be blank"]
    assert input.invalid()
    assert users.all().count() == 0


def test_create_unique_violation_transplants_errors(users, ann):
    input = UserInput(name="Other Ann", email="ann@example.com")
    result = users.create(input)
    assert result.failure is input
    assert input.errors["email"] == ["has already been taken"]
    assert users.all().count() == 1


def test_create_composite_unique_violation(posts, ann):
    posts.create(OpenInput(user_id=ann.id, title="Hello"))
    result = posts.create(blog.PostInput(title="Hello").with_attributes(user_id=ann.id))
    assert result.errors["title"] == ["has already been taken in scope user_id"]


def test_create_with_plain_mapping_returns_raw_failure(users):
    result = users.create({"name": "Cat"})
    assert result.is_failure
    assert result.failure.__class__.__name__ == "IntegrityError"


def test_update(users, ann):
    result = users.update(ann.id, OpenInput(name="Annie"))
    assert result.value.name == "Annie"
    assert users.find(ann.id).value.email == "ann@example.com"


def test_update_missing_record_transplants_not_found(users):
    input = OpenInput(name="x")
    result = users.update(999, input)
    assert result.failure is input
    assert "base" in input.errors


def test_failed_update_keeps_the_edited_model(users, ann, bob):
    user = users.find(ann.id).value
    form = UserInput(name="Ann", email="bob@example.com").with_model(user)
    result = users.update(ann.id, form)
    assert result.failure is form
    assert result.failure.model is user
    assert form.input.errors["email"] == ["has already been taken"]


def test_update_rejects_unknown_attributes(users, ann):
    with pytest.raises(TypeError):
        users.update(ann.id, {"nickname": "A"})


def test_upsert_creates_then_updates(users):
    first = users.upsert(by={"email": "dan@example.com"}, input=OpenInput(name="Dan"))
    second = users.upsert(by={"email": "dan@example.com"}, input=OpenInput(name="Daniel"))
    assert first.value.id == second.value.id
    assert second.value.name == "Daniel"
    assert users.all().count() == 1


def test_destroy(users, ann):
    result = users.destroy(ann.id)
    assert result.value.name == "Ann"
    assert users.find(ann.id).is_failure


def test_destroy_missing_is_a_failure(users):
    assert users.destroy(999).is_failure


# --- lists ---

def test_all_uses_default_order(users, ann, bob, session):
    session.add(UserRecord(name="Aaron", email="aaron@example.com"))
    session.flush()
    assert [u.name for u in users.all()] == ["Aaron", "Ann", "Bob"]
    assert [u.name for u in users.all().order(name="desc")] == ["Bob", "Ann", "Aaron"]


def test_model_and_list_helpers(users, ann):
    assert users.model(ann).email == "ann@example.com"
    assert [u.name for u in users.list([ann])] == ["Ann"]
    assert users.models([ann]).first().name == "Ann"


# --- with_ ---

def test_with_is_memoized_and_order_insensitive(users):
    assert users.with_("posts") is users.with_("posts")
    assert users.with_("posts", "post_count") is users.with_("post_count", "posts")
    assert users.with_("posts").with_("post_count") is users.with_("post_count", "posts")
    assert users.with_() is users


def test_with_unknown_optional_raises_immediately(users):
    with pytest.raises(ConfigurationError, match="nope"):
        users.with_("nope")


def test_with_loads_optional_attributes(users, ann, session):
    session.add_all([PostRecord(user_id=ann.id, title="b"), PostRecord(user_id=ann.id, title="a")])
    session.flush()
    user = users.with_("posts", "post_count").find(ann.id).value
    assert [p.title for p in user.posts] == ["b", "a"]
    assert all(isinstance(p, Post) for p in user.posts)
    assert user.post_count == 2


# --- narrowing ---

def test_narrowed_repository_finds_within_scope(posts, ann, bob, session):
    session.add_all([PostRecord(user_id=ann.id, title="mine"), PostRecord(user_id=bob.id, title="yours")])
    session.flush()
    mine = session.query(PostRecord).filter_by(title="mine").one()
    yours = session.query(PostRecord).filter_by(title="yours").one()
    assert posts.find_for(ann.id, mine.id).is_success
    assert posts.find_for(ann.id, yours.id).is_failure
    assert posts.find(yours.id).is_success


def test_narrowed_accepts_callables(posts, ann, session):
    session.add(PostRecord(user_id=ann.id, title="mine"))
    session.flush()
    narrowed = posts.narrowed(lambda scope: scope.where(title="other"))
    assert narrowed.all().count() == 0
    assert posts.all().count() == 1


def test_narrowed_rejects_other_values(posts):
    with pytest.raises(ConfigurationError):
        posts.narrowed(42)
