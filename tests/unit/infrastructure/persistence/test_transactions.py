"""Tests for Repository.transaction and the savepoints around repository writes."""

import pytest

from blog import UserInput
from repokit.domain.exceptions import Rollback
from repokit.domain.input import OpenInput
from repokit.domain.result import Failure, Success


def _input(name):
    return UserInput(name=name, email=f"{name.lower()}@example.com")


def test_successful_block_commits_savepoint(users):
    result = users.transaction(lambda: users.create(_input("Ann")))
    assert result.is_success
    assert users.all().count() == 1


def test_plain_return_values_become_successes(users):
    assert users.transaction(lambda: 42) == Success(42)


def test_failure_result_rolls_back_block(users):
    def block():
        users.create(_input("Ann"))
        return Failure("nope")

    result = users.transaction(block)
    assert result.failure == "nope"
    assert users.all().count() == 0


def test_nested_failure_leaves_no_records(users):
    def outer():
        users.create(_input("Ann"))
        return users.transaction(lambda: users.create(OpenInput(name="no email")))

    result = users.transaction(outer)
    assert result.is_failure
    assert result.errors["email"] == ["can't be blank"]
    assert users.all().count() == 0


def test_inner_rollback_keeps_outer_writes(users):
    def outer():
        users.create(_input("Ann"))
        users.transaction(lambda: users.create(_input("Bob")).and_then(lambda _: Failure("undo bob")))
        return "done"

    assert users.transaction(outer).value == "done"
    assert [u.name for u in users.all()] == ["Ann"]


def test_rollback_signal_rolls_back_without_raising(users):
    def block():
        users.create(_input("Ann"))
        users.rollback()

    result = users.transaction(block)
    assert result.is_failure
    assert isinstance(result.failure, Rollback)
    assert users.all().count() == 0


def test_exceptions_roll_back_and_propagate(users):
    def block():
        users.create(_input("Ann"))
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        users.transaction(block)
    assert users.all().count() == 0


def test_failed_write_inside_outer_transaction_keeps_earlier_writes(users):
    def block():
        users.create(_input("Ann"))
        failed = users.create(OpenInput(name="no email"))
        assert failed.is_failure
        return "ok"

    assert users.transaction(block).value == "ok"
    assert users.all().count() == 1


def test_to_result_with_transaction_option(users):
    result = users.to_result(lambda: users.create(_input("Ann")).value, transaction=True)
    assert result.value.name == "Ann"
