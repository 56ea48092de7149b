"""Engine and session factory construction.

The engine is created once per application (see ``app.core.container``) and
disposed on shutdown. Services receive a ``sessionmaker`` and open one
session per unit of work through :func:`session_scope`.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import DatabaseSettings
from app.db.base import Base

logger = logging.getLogger(__name__)


def build_engine(db_settings: DatabaseSettings) -> Engine:
    """Create the SQLAlchemy engine for the configured URL.

    SQLite connections are shared across the request thread pool, and an
    in-memory SQLite URL keeps a single connection so every session sees the
    same database.
    """

    url = db_settings.url
    kwargs: dict = {"echo": db_settings.echo, "future": True}

    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True

    engine = create_engine(url, **kwargs)
    logger.info("db.engine_created", extra={"dialect": engine.dialect.name})
    return engine


def create_schema(engine: Engine) -> None:
    """Create missing tables (no-op for existing ones)."""

    # Import for side effects: registers every model on Base.metadata
    from app.db import models  # noqa: F401

    Base.metadata.create_all(engine)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, expire_on_commit=False, future=True)


@contextmanager
def session_scope(factory: sessionmaker) -> Iterator[Session]:
    """Provide a transactional scope around a series of operations.

    Commits on success, rolls back and re-raises on any exception.
    """

    session: Session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
