"""Shared fixtures: a fresh in-memory sqlite database per test, with the blog tables."""

import pytest
from sqlalchemy.orm import Session

import blog
from repokit.infrastructure.database import Base, make_engine


@pytest.fixture
def engine():
    engine = make_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def users(session):
    return blog.UserRepository(session)


@pytest.fixture
def posts(session):
    return blog.PostRepository(session)


@pytest.fixture
def ann(session):
    record = blog.UserRecord(name="Ann", email="ann@example.com")
    session.add(record)
    session.flush()
    return record


@pytest.fixture
def bob(session):
    record = blog.UserRecord(name="Bob", email="bob@example.com")
    session.add(record)
    session.flush()
    return record
