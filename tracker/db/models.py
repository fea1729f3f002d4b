"""SQLAlchemy ORM model backing the ``sqlite`` storage backend.

Every collection shares one table; each row holds a single entity's raw JSON
payload together with its position inside the collection snapshot so that
insertion order survives a reload.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow():
    """Return current UTC datetime."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Declarative base for tracker tables."""


class TrackerRecord(Base):
    """One persisted entity inside a named collection."""

    __tablename__ = "tracker_records"
    __table_args__ = (
        UniqueConstraint(
            "collection",
            "entity_id",
            name="uq_tracker_records_collection_entity",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    collection: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    entity_id: Mapped[str] = mapped_column(String(64), nullable=False)
    position: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        doc="Zero-based index of the entity inside the saved snapshot.",
    )
    payload: Mapped[dict[str, object]] = mapped_column(JSON, nullable=False)
    saved_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )


__all__ = ["Base", "TrackerRecord"]
