"""SQLAlchemy engine, session factory, and session dependency."""

from __future__ import annotations

import logging
from collections.abc import Generator

from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = "sqlite+pysqlite:///:memory:"
    echo: bool = False


def enable_sqlite_savepoints(engine: Engine) -> Engine:
    """Let pysqlite run nested transactions (SAVEPOINT) correctly.

    pysqlite begins transactions lazily on its own, which breaks SAVEPOINT; SQLAlchemy's
    documented fix takes over emitting BEGIN.
    """

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):  # type: ignore[no-untyped-def]
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):  # type: ignore[no-untyped-def]
        conn.exec_driver_sql("BEGIN")

    return engine


def make_engine(database_url: str, echo: bool = False) -> Engine:
    if database_url.startswith("sqlite"):
        kwargs = {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
        engine = create_engine(database_url, echo=echo, **kwargs)
        logger.debug("Created sqlite engine %s with savepoint support", database_url)
        return enable_sqlite_savepoints(engine)
    return create_engine(database_url, echo=echo, pool_pre_ping=True)


settings = Settings()

engine = make_engine(settings.database_url, echo=settings.echo)

SessionLocal = sessionmaker(
    bind=engine,
    class_=Session,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Shared declarative base for all records."""


def get_session() -> Generator[Session, None, None]:
    """Dependency that yields a transactional session, committed when the caller is done."""
    with SessionLocal() as session:
        with session.begin():
            yield session
