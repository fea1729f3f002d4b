from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy import Engine, create_engine as sa_create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from tracker.db.models import Base
from tracker.settings import TrackerSettings

logger = logging.getLogger(__name__)


def _is_memory_sqlite(url: str) -> bool:
    parsed = make_url(url)
    return parsed.drivername.startswith("sqlite") and parsed.database in (None, "", ":memory:")


def _ensure_sqlite_directory(url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""

    parsed = make_url(url)
    if not parsed.drivername.startswith("sqlite") or _is_memory_sqlite(url):
        return
    Path(parsed.database).expanduser().parent.mkdir(parents=True, exist_ok=True)


def create_engine(url: str) -> Engine:
    """Create the SQLAlchemy engine and make sure the schema exists.

    In-memory SQLite URLs share a single connection so every session sees the
    same database.
    """

    normalized_url = url.strip()
    if not normalized_url:
        raise RuntimeError("DATABASE_URL is set but empty. Provide a SQLAlchemy URL.")

    _ensure_sqlite_directory(normalized_url)
    if _is_memory_sqlite(normalized_url):
        engine = sa_create_engine(
            normalized_url,
            future=True,
            echo=False,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        engine = sa_create_engine(normalized_url, future=True, echo=False)
    Base.metadata.create_all(engine)
    logger.info("Record storage ready at %s", engine.url.render_as_string(hide_password=True))
    return engine


def create_engine_from_settings(settings: TrackerSettings) -> Engine:
    """Return an engine for :attr:`TrackerSettings.resolved_database_url`."""

    return create_engine(settings.resolved_database_url)


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Return a session factory bound to ``engine``."""

    return sessionmaker(engine, expire_on_commit=False)


__all__ = ["create_engine", "create_engine_from_settings", "create_session_factory"]
