"""Storage backends implementing :class:`PersistenceAdapter`."""

from __future__ import annotations

from sqlalchemy.orm import Session, sessionmaker

from tracker.db.base import CorruptionHandler, PersistenceAdapter, Records
from tracker.db.json_file import JsonFilePersistence
from tracker.db.memory import InMemoryPersistence
from tracker.db.sql import SqlPersistence
from tracker.settings import TrackerSettings


def build_persistence(
    collection: str,
    settings: TrackerSettings,
    *,
    session_factory: sessionmaker[Session] | None = None,
    on_corruption: CorruptionHandler | None = None,
) -> PersistenceAdapter:
    """Return the adapter selected by ``settings.storage_backend``."""

    backend = settings.storage_backend
    if backend == "memory":
        return InMemoryPersistence(collection)
    if backend == "json":
        return JsonFilePersistence(
            collection,
            settings.collection_path(collection),
            on_corruption=on_corruption,
        )
    if backend == "sqlite":
        if session_factory is None:
            raise RuntimeError("The sqlite backend requires a session factory")
        return SqlPersistence(collection, session_factory, on_corruption=on_corruption)
    raise RuntimeError(f"Unsupported storage backend: {backend}")


__all__ = [
    "CorruptionHandler",
    "InMemoryPersistence",
    "JsonFilePersistence",
    "PersistenceAdapter",
    "Records",
    "SqlPersistence",
    "build_persistence",
]
