"""SQLAlchemy-backed persistence for a single collection."""

from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from tracker.db.base import CorruptionHandler, Records, report_corruption, validate_records
from tracker.db.models import TrackerRecord
from tracker.errors import PersistenceError

logger = logging.getLogger(__name__)


class SqlPersistence:
    """Persist one collection's snapshot as rows of ``tracker_records``.

    :meth:`save` deletes the collection's rows and inserts the new snapshot
    inside a single transaction, so the previous snapshot stays visible when
    the write fails.
    """

    def __init__(
        self,
        collection: str,
        session_factory: sessionmaker[Session],
        *,
        on_corruption: CorruptionHandler | None = None,
    ) -> None:
        self.collection = collection
        self._session_factory = session_factory
        self._on_corruption = on_corruption

    def load(self) -> Records:
        query = (
            select(TrackerRecord.payload)
            .where(TrackerRecord.collection == self.collection)
            .order_by(TrackerRecord.position)
        )
        try:
            with self._session_factory() as session:
                payloads = list(session.execute(query).scalars().all())
            return validate_records(payloads)
        except (SQLAlchemyError, ValueError) as exc:
            return report_corruption(self.collection, exc, self._on_corruption)

    def save(self, records: Records) -> None:
        rows = []
        for position, record in enumerate(records):
            entity_id = record.get("id")
            if not isinstance(entity_id, str):
                raise PersistenceError(f"{self.collection}: record {position} has no string id")
            rows.append(
                TrackerRecord(
                    collection=self.collection,
                    entity_id=entity_id,
                    position=position,
                    payload=record,
                )
            )

        try:
            with self._session_factory.begin() as session:
                session.execute(
                    delete(TrackerRecord).where(TrackerRecord.collection == self.collection)
                )
                session.add_all(rows)
        except (SQLAlchemyError, TypeError, ValueError) as exc:
            raise PersistenceError(f"{self.collection}: failed to save snapshot: {exc}") from exc

        logger.debug("Saved %d %s records to the database", len(rows), self.collection)


__all__ = ["SqlPersistence"]
