"""Cross-store favorites index.

The index is derived from the ``is_favorite`` flag of every registered store.
Stores call :meth:`FavoritesIndex.reconcile` while swapping in a committed
snapshot, so a delete (direct or cascading) never leaves a reference behind.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from tracker.errors import NotFoundError, ReferentialError, ValidationError
from tracker.schemas.entity import Entity
from tracker.services.query import alphabetical_key
from tracker.services.store import EntityStore

logger = logging.getLogger(__name__)


class FavoriteSort(str, Enum):
    CONTAINER = "container"
    CREATED_AT = "created_at"
    TITLE = "title"


@dataclass(frozen=True, slots=True)
class FavoriteRef:
    """A favorited entity with the labels list screens display."""

    collection: str
    entity: Entity
    title: str
    container_name: str | None = None

    @property
    def entity_id(self) -> str:
        return self.entity.id


class FavoritesIndex:
    def __init__(self, *, debug: bool = False) -> None:
        self.debug = debug
        self._stores: dict[str, EntityStore[Any]] = {}
        self._members: dict[str, str] = {}

    def register(self, store: EntityStore[Any]) -> None:
        """Attach ``store``; favoritable stores seed the index from their flags."""

        self._stores[store.collection] = store
        if store.domain.supports_favorites:
            store._favorites = self
            self.rebuild(store)

    def rebuild(self, store: EntityStore[Any]) -> None:
        """Re-derive every reference owned by ``store`` from its snapshot."""

        self._members = {
            entity_id: collection
            for entity_id, collection in self._members.items()
            if collection != store.collection
        }
        for entity in store.get_all():
            if entity.is_favorite:
                self._members[entity.id] = store.collection

    def reconcile(
        self,
        store: EntityStore[Any],
        *,
        changed: Iterable[Entity] = (),
        removed_ids: Iterable[str] = (),
    ) -> None:
        for entity_id in removed_ids:
            self._members.pop(entity_id, None)
        if not store.domain.supports_favorites:
            return
        for entity in changed:
            if entity.is_favorite:
                self._members[entity.id] = store.collection
            else:
                self._members.pop(entity.id, None)

    def toggle(self, entity_id: str) -> Entity:
        """Flip ``is_favorite`` on ``entity_id`` through its owning store."""

        store = self._store_holding(entity_id)
        if store is None:
            raise NotFoundError("favorites", entity_id)
        if not store.domain.supports_favorites:
            raise ValidationError.for_field(
                "is_favorite", f"{store.collection} records cannot be favorited", entity_id
            )
        current = store.get(entity_id)
        return store.patch(entity_id, is_favorite=not current.is_favorite)

    def contains(self, entity_id: str) -> bool:
        return entity_id in self._members

    def count(self) -> int:
        return len(self._members)

    def ids(self) -> frozenset[str]:
        return frozenset(self._members)

    def list(self, sort: FavoriteSort = FavoriteSort.CREATED_AT) -> list[FavoriteRef]:
        """Return every favorite across registered stores, ties broken by id."""

        refs = sorted(self._resolve(), key=lambda ref: ref.entity_id)
        match sort:
            case FavoriteSort.CREATED_AT:
                refs.sort(key=lambda ref: ref.entity.created_at, reverse=True)
            case FavoriteSort.TITLE:
                refs.sort(key=lambda ref: alphabetical_key(ref.title))
            case FavoriteSort.CONTAINER:
                refs.sort(
                    key=lambda ref: (
                        ref.container_name is None,
                        alphabetical_key(ref.container_name or ""),
                        ref.collection,
                    )
                )
        return refs

    def _store_holding(self, entity_id: str) -> EntityStore[Any] | None:
        collection = self._members.get(entity_id)
        if collection is not None and entity_id in self._stores[collection]:
            return self._stores[collection]
        return next((store for store in self._stores.values() if entity_id in store), None)

    def _resolve(self) -> list[FavoriteRef]:
        refs: list[FavoriteRef] = []
        for entity_id, collection in self._members.items():
            store = self._stores[collection]
            entity = store.get(entity_id)
            if entity is None or not entity.is_favorite:
                message = f"favorites index references missing {collection} id {entity_id!r}"
                if self.debug:
                    raise ReferentialError(message)
                logger.warning("Skipping dangling favorite: %s", message)
                continue
            refs.append(
                FavoriteRef(
                    collection=collection,
                    entity=entity,
                    title=store.domain.title_of(entity),
                    container_name=self._container_name(store, entity),
                )
            )
        return refs

    @staticmethod
    def _container_name(store: EntityStore[Any], entity: Entity) -> str | None:
        owner = store.owner
        if owner is None:
            return None
        container = owner.get(getattr(entity, store.domain.owner_field))
        return None if container is None else owner.domain.title_of(container)


__all__ = ["FavoriteRef", "FavoriteSort", "FavoritesIndex"]
