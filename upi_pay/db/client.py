"""SQLAlchemy engine/session helpers for the SQL-backed blob store.

Usage
-----
from upi_pay.db.client import session_scope

with session_scope(database_url=url) as s:
    s.execute(...)

Engines are cached per URL so a process can hold handles to more than one
database (tests routinely do).
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .models import Base

_ENGINES: dict[str, Engine] = {}
_SESSION_MAKERS: dict[str, sessionmaker[Session]] = {}
_LOCK = threading.Lock()


def get_engine(database_url: str) -> Engine:
    """Return the shared engine for ``database_url``, creating it on first use.

    The blob table is created on first use as well; it is the only table.
    """

    if not database_url:
        raise RuntimeError("database_url is empty; cannot initialize database client")
    with _LOCK:
        engine = _ENGINES.get(database_url)
        if engine is None:
            engine = create_engine(database_url, pool_pre_ping=True)
            Base.metadata.create_all(bind=engine)
            _SESSION_MAKERS[database_url] = sessionmaker(
                bind=engine, expire_on_commit=False, class_=Session
            )
            _ENGINES[database_url] = engine
        return engine


def get_session(database_url: str) -> Session:
    """Return a new SQLAlchemy session bound to the shared engine."""

    get_engine(database_url)
    return _SESSION_MAKERS[database_url]()


@contextmanager
def session_scope(*, database_url: str) -> Iterator[Session]:
    """Provide a transactional scope around a series of operations."""

    session = get_session(database_url)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def dispose_engines() -> None:
    """Dispose and forget every cached engine (used at shutdown and in tests)."""

    with _LOCK:
        for engine in _ENGINES.values():
            engine.dispose()
        _ENGINES.clear()
        _SESSION_MAKERS.clear()


__all__ = [
    "dispose_engines",
    "get_engine",
    "get_session",
    "session_scope",
]
