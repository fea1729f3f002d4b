"""Authoritative in-memory + durable collection of one domain's records.

Mutations follow a single path:

* validate the request against the model and the domain rules,
* build a new tuple (the working copy) without touching live state,
* save the full snapshot through the :class:`PersistenceAdapter`,
* swap the tuple in, reconcile the favorites index and notify subscribers.

A failed save leaves the live tuple untouched, so store state always matches
the last successfully persisted snapshot.  Container stores cascade deletes to
linked child stores; children are saved first and restored if a later save in
the same operation fails.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Any, Generic, Literal, TypeVar

from pydantic import ValidationError as PydanticValidationError

from tracker.db.base import CorruptionHandler, PersistenceAdapter, Records, report_corruption
from tracker.errors import (
    NotFoundError,
    PersistenceError,
    ValidationError,
    details_from_pydantic,
)
from tracker.photos import PhotoManager
from tracker.schemas.entity import Entity, local_today, utcnow
from tracker.schemas.registry import DomainSpec
from tracker.services.query import alphabetical_key

if TYPE_CHECKING:
    from tracker.services.favorites import FavoritesIndex

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Entity)

ChangeKind = Literal["added", "updated", "deleted"]


@dataclass(frozen=True, slots=True)
class StoreChange:
    """Notification delivered to subscribers after a committed mutation."""

    collection: str
    kind: ChangeKind
    entity_ids: tuple[str, ...]


Subscriber = Callable[[StoreChange], None]


class Subscription:
    """Handle returned by :meth:`EntityStore.subscribe`."""

    def __init__(self, store: EntityStore[Any], callback: Subscriber) -> None:
        self._store = store
        self._callback = callback

    @property
    def active(self) -> bool:
        return self._callback in self._store._subscribers

    def unsubscribe(self) -> None:
        if self.active:
            self._store._subscribers.remove(self._callback)


@dataclass(slots=True)
class _PendingWrite:
    """Working copy for one store inside a (possibly cascading) commit."""

    store: EntityStore[Any]
    entities: tuple[Entity, ...]
    change: StoreChange
    changed: tuple[Entity, ...] = ()
    removed: tuple[Entity, ...] = field(default_factory=tuple)


class EntityStore(Generic[E]):
    """CRUD, validation and persistence for a single collection.

    Deleted ids are tombstoned for the lifetime of the store object and
    rejected by :meth:`add`.  Tombstones are not persisted: a new process
    only sees the ids present in the saved snapshot.
    """

    def __init__(
        self,
        domain: DomainSpec,
        persistence: PersistenceAdapter,
        *,
        clock: Callable[[], datetime] = utcnow,
        today: Callable[[], date] | None = None,
        photo_manager: PhotoManager | None = None,
        on_corruption: CorruptionHandler | None = None,
    ) -> None:
        self.domain = domain
        self._persistence = persistence
        self._clock = clock
        self._today = today or (lambda: local_today(clock))
        self._photo_manager = photo_manager
        self._on_corruption = on_corruption
        self._entities: tuple[E, ...] = ()
        self._positions: dict[str, int] = {}
        self._tombstones: set[str] = set()
        self._subscribers: list[Subscriber] = []
        self._owner: EntityStore[Any] | None = None
        self._children: list[EntityStore[Any]] = []
        self._favorites: FavoritesIndex | None = None
        self.reload()

    # -- Reads ----------------------------------------------------------------

    @property
    def collection(self) -> str:
        return self.domain.collection

    @property
    def owner(self) -> EntityStore[Any] | None:
        """Container store this store's records belong to, once linked."""

        return self._owner

    def get(self, entity_id: str) -> E | None:
        position = self._positions.get(entity_id)
        return None if position is None else self._entities[position]

    def get_all(self) -> tuple[E, ...]:
        return self._entities

    def count(self) -> int:
        return len(self._entities)

    def __len__(self) -> int:
        return len(self._entities)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._positions

    def name_exists(self, name: str, *, exclude_id: str | None = None) -> bool:
        """Return ``True`` when another record already uses ``name`` (case-insensitive)."""

        wanted = alphabetical_key(name.strip())
        return any(
            alphabetical_key(self.domain.title_of(entity)) == wanted
            for entity in self._entities
            if entity.id != exclude_id
        )

    def children_of(self, owner_id: str) -> tuple[Entity, ...]:
        """Return every record owned by ``owner_id`` across linked child stores."""

        owned: list[Entity] = []
        for child in self._children:
            owner_field = child.domain.owner_field
            owned.extend(e for e in child.get_all() if getattr(e, owner_field) == owner_id)
        return tuple(owned)

    def child_counts(self) -> dict[str, int]:
        """Return the number of owned children for every container in the store."""

        counts = {entity.id: 0 for entity in self._entities}
        for child in self._children:
            owner_field = child.domain.owner_field
            for entity in child.get_all():
                owner_id = getattr(entity, owner_field)
                if owner_id in counts:
                    counts[owner_id] += 1
        return counts

    # -- Wiring ---------------------------------------------------------------

    def link_children(self, child: EntityStore[Any]) -> None:
        """Register ``child`` as exclusively owned by records of this store."""

        if child.domain.owner_collection != self.collection:
            raise ValueError(
                f"{child.collection} is not owned by {self.collection}"
            )
        child._owner = self
        if child not in self._children:
            self._children.append(child)

    def subscribe(self, callback: Subscriber) -> Subscription:
        """Call ``callback`` synchronously after every committed mutation."""

        self._subscribers.append(callback)
        return Subscription(self, callback)

    def reload(self) -> None:
        """Replace live state with the adapter's last saved snapshot."""

        records = self._persistence.load()
        try:
            entities = self._decode(records)
        except (PydanticValidationError, ValueError) as exc:
            report_corruption(self.collection, exc, self._on_corruption)
            entities = ()
        self._entities = entities
        self._positions = {entity.id: index for index, entity in enumerate(entities)}
        if self._favorites is not None:
            self._favorites.rebuild(self)
        logger.debug("Loaded %d %s records", len(entities), self.collection)

    # -- Mutations ------------------------------------------------------------

    def add(self, entity: E) -> E:
        """Validate and persist a new record."""

        if entity.id in self._positions or entity.id in self._tombstones:
            raise ValidationError.for_field("id", "id is already in use", entity.id)
        validated = self._validate(entity)
        self._commit(
            [
                _PendingWrite(
                    store=self,
                    entities=self._entities + (validated,),
                    change=StoreChange(self.collection, "added", (validated.id,)),
                    changed=(validated,),
                )
            ]
        )
        return validated

    def update(self, entity: E) -> E:
        """Replace an existing record, stamping ``updated_at`` when anything changed."""

        current = self._require(entity.id)
        candidate = entity.model_copy(
            update={"created_at": current.created_at, "updated_at": current.updated_at}
        )
        validated = self._validate(candidate)
        if validated.content_fields() == current.content_fields():
            return current

        stamped = validated.model_copy(update={"updated_at": self._next_timestamp(current)})
        working = list(self._entities)
        working[self._positions[entity.id]] = stamped
        self._commit(
            [
                _PendingWrite(
                    store=self,
                    entities=tuple(working),
                    change=StoreChange(self.collection, "updated", (stamped.id,)),
                    changed=(stamped,),
                )
            ]
        )
        return stamped

    def patch(self, entity_id: str, **changes: Any) -> E:
        """Apply ``changes`` to the current record; unnamed fields stay unchanged."""

        current = self._require(entity_id)
        forbidden = {"id", "created_at", "updated_at"} & changes.keys()
        if forbidden:
            field_name = sorted(forbidden)[0]
            raise ValidationError.for_field(field_name, "field cannot be changed", changes[field_name])
        payload = {**current.model_dump(), **changes}
        try:
            candidate = type(current).model_validate(payload)
        except PydanticValidationError as exc:
            raise ValidationError(
                f"{self.collection}: invalid changes", details=details_from_pydantic(exc)
            ) from exc
        return self.update(candidate)

    def delete(self, entity_id: str) -> None:
        """Remove a record and everything it owns; unknown ids are a no-op."""

        self.delete_many([entity_id])

    def delete_many(self, entity_ids: Iterable[str]) -> None:
        """Remove several records (and their children) in one commit."""

        targets = {entity_id for entity_id in entity_ids if entity_id in self._positions}
        if not targets:
            logger.debug("Delete ignored for unknown %s ids", self.collection)
            return
        pending: list[_PendingWrite] = []
        self._plan_delete(targets, pending)
        self._commit(pending)

    def archive(self, entity_id: str) -> E:
        """Mark a record archived and stamp ``archived_at``."""

        self._require_archive_support()
        current = self._require(entity_id)
        if current.is_archived:
            return current
        return self.patch(entity_id, is_archived=True, archived_at=self._clock())

    def unarchive(self, entity_id: str) -> E:
        """Clear the archived flag and ``archived_at``."""

        self._require_archive_support()
        return self.patch(entity_id, is_archived=False, archived_at=None)

    def archive_many(self, entity_ids: Iterable[str]) -> tuple[E, ...]:
        """Archive several records in one commit; every id must exist."""

        self._require_archive_support()
        ids = list(dict.fromkeys(entity_ids))
        currents = [self._require(entity_id) for entity_id in ids]
        now = self._clock()
        working = list(self._entities)
        changed: list[E] = []
        for current in currents:
            if current.is_archived:
                continue
            updated = current.model_copy(
                update={
                    "is_archived": True,
                    "archived_at": now,
                    "updated_at": self._next_timestamp(current),
                }
            )
            working[self._positions[current.id]] = updated
            changed.append(updated)
        if changed:
            self._commit(
                [
                    _PendingWrite(
                        store=self,
                        entities=tuple(working),
                        change=StoreChange(
                            self.collection, "updated", tuple(e.id for e in changed)
                        ),
                        changed=tuple(changed),
                    )
                ]
            )
        return tuple(self._require(entity_id) for entity_id in ids)

    def move_children(self, from_owner_id: str, to_owner_id: str) -> int:
        """Re-home every child of ``from_owner_id`` under ``to_owner_id``.

        Returns the number of records moved.  Used to keep items when a
        container is about to be deleted.
        """

        self._require(from_owner_id)
        self._require(to_owner_id)
        if from_owner_id == to_owner_id:
            return 0

        pending: list[_PendingWrite] = []
        moved = 0
        for child in self._children:
            owner_field = child.domain.owner_field
            working = list(child.get_all())
            changed: list[Entity] = []
            for index, entity in enumerate(working):
                if getattr(entity, owner_field) != from_owner_id:
                    continue
                updated = entity.model_copy(
                    update={owner_field: to_owner_id, "updated_at": child._next_timestamp(entity)}
                )
                working[index] = updated
                changed.append(updated)
            if changed:
                moved += len(changed)
                pending.append(
                    _PendingWrite(
                        store=child,
                        entities=tuple(working),
                        change=StoreChange(
                            child.collection, "updated", tuple(e.id for e in changed)
                        ),
                        changed=tuple(changed),
                    )
                )
        if pending:
            self._commit(pending)
        return moved

    # -- Internals ------------------------------------------------------------

    def _decode(self, records: Records) -> tuple[E, ...]:
        entities = tuple(self.domain.model.model_validate(record) for record in records)
        seen: set[str] = set()
        for entity in entities:
            if entity.id in seen:
                raise ValueError(f"duplicate id {entity.id!r} in stored snapshot")
            seen.add(entity.id)
        return entities  # type: ignore[return-value]

    def _require(self, entity_id: str) -> E:
        entity = self.get(entity_id)
        if entity is None:
            raise NotFoundError(self.collection, entity_id)
        return entity

    def _require_archive_support(self) -> None:
        if not self.domain.supports_archive:
            raise ValidationError.for_field(
                "is_archived", f"{self.collection} records cannot be archived"
            )

    def _validate(self, entity: E) -> E:
        if not isinstance(entity, self.domain.model):
            raise ValidationError.for_field(
                "__root__",
                f"expected {self.domain.model.__name__}, got {type(entity).__name__}",
            )
        try:
            validated = self.domain.model.model_validate(entity.model_dump())
        except PydanticValidationError as exc:
            raise ValidationError(
                f"{self.collection}: invalid record", details=details_from_pydantic(exc)
            ) from exc

        today = self._today()
        for field_name in self.domain.past_date_fields:
            value = getattr(validated, field_name)
            if value is not None and value > today:
                raise ValidationError.for_field(
                    field_name, "date must not be in the future", value.isoformat()
                )
        for field_name in self.domain.past_year_fields:
            value = getattr(validated, field_name)
            if value is not None and value > today.year:
                raise ValidationError.for_field(
                    field_name, "year must not be in the future", value
                )

        if self.domain.unique_date and self.domain.date_field is not None:
            date_field = self.domain.date_field
            wanted = getattr(validated, date_field)
            clash = next(
                (
                    other
                    for other in self._entities
                    if other.id != validated.id and getattr(other, date_field) == wanted
                ),
                None,
            )
            if clash is not None:
                raise ValidationError.for_field(
                    date_field, "an entry already exists for this date", wanted.isoformat()
                )

        if self._owner is not None:
            owner_field = self.domain.owner_field
            owner_id = getattr(validated, owner_field)
            if owner_id not in self._owner:
                raise ValidationError.for_field(
                    owner_field, f"unknown {self._owner.collection} id", owner_id
                )
        return validated  # type: ignore[return-value]

    def _next_timestamp(self, current: Entity) -> datetime:
        now = self._clock()
        if now <= current.updated_at:
            now = current.updated_at + timedelta(microseconds=1)
        return now

    def _plan_delete(self, targets: set[str], pending: list[_PendingWrite]) -> None:
        for child in self._children:
            owner_field = child.domain.owner_field
            owned = {e.id for e in child.get_all() if getattr(e, owner_field) in targets}
            if owned:
                child._plan_delete(owned, pending)

        removed = tuple(e for e in self._entities if e.id in targets)
        kept = tuple(e for e in self._entities if e.id not in targets)
        pending.append(
            _PendingWrite(
                store=self,
                entities=kept,
                change=StoreChange(self.collection, "deleted", tuple(e.id for e in removed)),
                removed=removed,
            )
        )

    def _commit(self, pending: list[_PendingWrite]) -> None:
        saved: list[_PendingWrite] = []
        for write in pending:
            try:
                write.store._persistence.save([e.to_record() for e in write.entities])
            except PersistenceError:
                self._restore(saved)
                raise
            except (OSError, TypeError, ValueError) as exc:
                self._restore(saved)
                raise PersistenceError(f"{write.store.collection}: save failed: {exc}") from exc
            saved.append(write)

        for write in pending:
            write.store._swap(write)
        for write in pending:
            write.store._notify(write.change)
        for write in pending:
            write.store._cleanup_photos(write.removed)

    @staticmethod
    def _restore(saved: list[_PendingWrite]) -> None:
        for write in reversed(saved):
            store = write.store
            try:
                store._persistence.save([e.to_record() for e in store._entities])
            except (PersistenceError, OSError) as exc:
                logger.error(
                    "Failed to restore %s snapshot after an aborted commit: %s",
                    store.collection,
                    exc,
                )

    def _swap(self, write: _PendingWrite) -> None:
        self._entities = write.entities  # type: ignore[assignment]
        self._positions = {entity.id: index for index, entity in enumerate(self._entities)}
        removed_ids = tuple(e.id for e in write.removed)
        self._tombstones.update(removed_ids)
        if self._favorites is not None:
            self._favorites.reconcile(self, changed=write.changed, removed_ids=removed_ids)
        logger.debug(
            "Committed %s %s: %s", self.collection, write.change.kind, ", ".join(write.change.entity_ids)
        )

    def _notify(self, change: StoreChange) -> None:
        for callback in list(self._subscribers):
            try:
                callback(change)
            except Exception:
                logger.exception("Subscriber failed while handling %s change", self.collection)

    def _cleanup_photos(self, removed: Iterable[Entity]) -> None:
        if self._photo_manager is None or not self.domain.supports_photos:
            return
        for entity in removed:
            for photo_id in entity.photo_ids:
                try:
                    self._photo_manager.delete(photo_id)
                except (OSError, ValueError) as exc:
                    logger.warning(
                        "Photo %s of deleted %s record %s was not removed: %s",
                        photo_id,
                        self.collection,
                        entity.id,
                        exc,
                    )


__all__ = ["ChangeKind", "EntityStore", "StoreChange", "Subscriber", "Subscription"]
