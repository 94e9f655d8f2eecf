"""
Database configuration for SQLAlchemy + SQLite.

SQLite stands in for the document store: one table of history records,
queried newest-first with a fixed limit. make_session_factory() is shared
by the app and the tests so both get the same connection settings.
"""

from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import Pool, StaticPool
from .settings import settings


class Base(DeclarativeBase):
    """Base class for ORM models."""
    pass


def make_engine(url: str) -> Engine:
    """
    Engine for a SQLite URL. Sessions are used from the event loop and from
    threadpool workers, hence check_same_thread=False. In-memory databases
    need a single shared connection or every session sees an empty schema.
    """
    poolclass: Optional[type[Pool]] = StaticPool if url in ("sqlite://", "sqlite:///:memory:") else None
    return create_engine(
        url,
        connect_args={"check_same_thread": False},
        poolclass=poolclass,
    )


def make_session_factory(engine: Engine) -> sessionmaker:
    """Create the history table if needed and return a session factory on it."""
    from . import models  # noqa: F401  (registers WeatherRecord on Base)

    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


DATABASE_URL = f"sqlite:///{settings.sqlite_path}"

engine = make_engine(DATABASE_URL)
