"""Centralized database engine factory.

All resources share a single SQLAlchemy engine per process. Dagster's
DefaultRunLauncher spawns one subprocess per run, so each matching run gets
exactly one engine.

Uses NullPool: connections are opened on demand and returned immediately
after use, so a matching run holds at most one connection per worker thread
that is actively executing a query.
"""

import os
import threading

from sqlalchemy import create_engine
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import NullPool

_lock = threading.Lock()
_engine: Engine | None = None
_session_factory: sessionmaker | None = None


def _build_url() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    host = os.getenv("POSTGRES_HOST", "localhost")
    port = os.getenv("POSTGRES_PORT", "5432")
    user = os.getenv("POSTGRES_USER", "matching")
    password = os.getenv("POSTGRES_PASSWORD", "matching_dev")
    database = os.getenv("POSTGRES_DB", "job_recommendations")
    return f"postgresql://{user}:{password}@{host}:{port}/{database}"


def get_engine() -> Engine:
    """Return the process-wide SQLAlchemy engine, creating it on first call."""
    global _engine, _session_factory
    if _engine is None:
        with _lock:
            if _engine is None:
                _engine = create_engine(_build_url(), poolclass=NullPool)
                _session_factory = sessionmaker(bind=_engine, expire_on_commit=False)
    return _engine


def get_session() -> Session:
    """Create a new session from the shared engine."""
    get_engine()
    return _session_factory()


def reset_engine() -> None:
    """Dispose the shared engine so the next call rebuilds it from the environment."""
    global _engine, _session_factory
    with _lock:
        if _engine is not None:
            _engine.dispose()
        _engine = None
        _session_factory = None


def upsert_statement(session: Session, model):
    """Return a dialect-specific INSERT supporting ``on_conflict_do_update``.

    PostgreSQL in production, SQLite for local runs and tests.
    """
    if session.get_bind().dialect.name == "sqlite":
        return sqlite_insert(model)
    return pg_insert(model)
