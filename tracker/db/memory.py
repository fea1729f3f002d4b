"""Process-local persistence used by tests and the ``memory`` backend."""

from __future__ import annotations

import copy
import json

from tracker.db.base import Records
from tracker.errors import PersistenceError


class InMemoryPersistence:
    """Keeps the last saved snapshot in memory.

    Records are deep-copied in both directions and round-tripped through
    :func:`json.dumps` on save so encoding problems surface exactly as they
    would with the file backend.
    """

    def __init__(self, collection: str, records: Records | None = None) -> None:
        self.collection = collection
        self._records: Records = copy.deepcopy(records or [])
        self.save_count = 0

    def load(self) -> Records:
        return copy.deepcopy(self._records)

    def save(self, records: Records) -> None:
        try:
            json.dumps(records)
        except (TypeError, ValueError) as exc:
            raise PersistenceError(
                f"{self.collection}: snapshot is not JSON serialisable: {exc}"
            ) from exc
        self._records = copy.deepcopy(records)
        self.save_count += 1


__all__ = ["InMemoryPersistence"]
