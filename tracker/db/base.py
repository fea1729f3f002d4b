"""Persistence contract shared by every storage backend."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

Records = list[dict[str, Any]]
"""Raw form of a collection: one JSON-compatible mapping per entity."""

CorruptionHandler = Callable[[str, Exception], None]
"""Observer notified with ``(collection, error)`` when stored data is unreadable."""

logger = logging.getLogger(__name__)


@runtime_checkable
class PersistenceAdapter(Protocol):
    """Minimal durable storage surface required by :class:`EntityStore`."""

    collection: str

    def load(self) -> Records:
        """Return the last saved records, or ``[]`` when missing or corrupt."""

    def save(self, records: Records) -> None:
        """Atomically replace the stored records; raise ``PersistenceError`` on failure."""


def report_corruption(
    collection: str,
    error: Exception,
    handler: CorruptionHandler | None,
) -> Records:
    """Log a corrupt snapshot, notify ``handler`` and return an empty snapshot."""

    logger.warning(
        "Stored data for collection %s is unreadable; starting empty: %s",
        collection,
        error,
    )
    if handler is not None:
        handler(collection, error)
    return []


def validate_records(payload: Any) -> Records:
    """Return ``payload`` when it has the raw snapshot shape, else raise ``ValueError``."""

    if not isinstance(payload, list):
        raise ValueError(f"expected a list of records, got {type(payload).__name__}")
    for index, item in enumerate(payload):
        if not isinstance(item, dict):
            raise ValueError(f"record {index} is {type(item).__name__}, expected an object")
    return payload


__all__ = [
    "CorruptionHandler",
    "PersistenceAdapter",
    "Records",
    "report_corruption",
    "validate_records",
]
