"""Wiring for a complete set of stores.

Keeping construction here leaves the store, query and statistics modules free
of configuration concerns so tests and embedding applications can build them
directly.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from sqlalchemy import Engine

from tracker.db import CorruptionHandler, build_persistence
from tracker.db.connection import create_engine_from_settings, create_session_factory
from tracker.photos import FilePhotoManager, PhotoManager
from tracker.schemas.entity import local_today, utcnow
from tracker.schemas.registry import DOMAINS, get_domain
from tracker.services.favorites import FavoritesIndex
from tracker.services.query import QueryEngine
from tracker.services.statistics import StatisticsEngine
from tracker.services.store import EntityStore
from tracker.settings import TrackerSettings, get_settings

logger = logging.getLogger(__name__)


@dataclass
class Workspace:
    """Every domain store plus the shared favorites index."""

    settings: TrackerSettings
    stores: dict[str, EntityStore[Any]]
    favorites: FavoritesIndex
    clock: Callable[[], datetime] = utcnow
    today: Callable[[], date] | None = None
    engine: Engine | None = None
    _queries: dict[str, QueryEngine] = field(default_factory=dict, repr=False)

    def store(self, collection: str) -> EntityStore[Any]:
        get_domain(collection)
        return self.stores[collection]

    def query(self, collection: str) -> QueryEngine:
        if collection not in self._queries:
            self._queries[collection] = QueryEngine(get_domain(collection))
        return self._queries[collection]

    def statistics(self, collection: str) -> StatisticsEngine:
        return StatisticsEngine(
            get_domain(collection),
            min_samples=self.settings.average_min_samples,
            clock=self.clock,
            today=self.today,
        )

    def close(self) -> None:
        """Release the database engine, if one was created."""

        if self.engine is not None:
            self.engine.dispose()
            self.engine = None


def build_workspace(
    settings: TrackerSettings | None = None,
    *,
    clock: Callable[[], datetime] = utcnow,
    today: Callable[[], date] | None = None,
    photo_manager: PhotoManager | None = None,
    on_corruption: CorruptionHandler | None = None,
) -> Workspace:
    """Create one store per registered domain and link containers to children."""

    settings = settings or get_settings()
    today = today or (lambda: local_today(clock))
    engine = None
    session_factory = None
    if settings.storage_backend == "sqlite":
        engine = create_engine_from_settings(settings)
        session_factory = create_session_factory(engine)
    if photo_manager is None and settings.storage_backend != "memory":
        photo_manager = FilePhotoManager(settings.photos_dir)

    stores: dict[str, EntityStore[Any]] = {}
    for collection, domain in DOMAINS.items():
        persistence = build_persistence(
            collection,
            settings,
            session_factory=session_factory,
            on_corruption=on_corruption,
        )
        stores[collection] = EntityStore(
            domain,
            persistence,
            clock=clock,
            today=today,
            photo_manager=photo_manager,
            on_corruption=on_corruption,
        )

    for store in stores.values():
        if store.domain.owner_collection is not None:
            stores[store.domain.owner_collection].link_children(store)

    favorites = FavoritesIndex(debug=settings.debug)
    for store in stores.values():
        favorites.register(store)

    logger.info(
        "Workspace ready with %d collections (backend=%s, favorites=%d)",
        len(stores),
        settings.storage_backend,
        favorites.count(),
    )
    return Workspace(
        settings=settings,
        stores=stores,
        favorites=favorites,
        clock=clock,
        today=today,
        engine=engine,
    )


__all__ = ["Workspace", "build_workspace"]
