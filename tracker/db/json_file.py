"""JSON file persistence with atomic replace semantics."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from tracker.db.base import CorruptionHandler, Records, report_corruption, validate_records
from tracker.errors import PersistenceError

logger = logging.getLogger(__name__)


class JsonFilePersistence:
    """Store one collection as a JSON array in ``path``.

    Writes go to a temporary file in the same directory which is flushed,
    fsynced and then moved over the target with :func:`os.replace`, so a reader
    sees either the previous snapshot or the new one, never a partial file.
    """

    def __init__(
        self,
        collection: str,
        path: Path,
        *,
        on_corruption: CorruptionHandler | None = None,
    ) -> None:
        self.collection = collection
        self.path = Path(path)
        self._on_corruption = on_corruption

    def load(self) -> Records:
        if not self.path.exists():
            return []
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
            return validate_records(payload)
        except (OSError, ValueError) as exc:
            # json.JSONDecodeError and UnicodeDecodeError are ValueError subclasses.
            return report_corruption(self.collection, exc, self._on_corruption)

    def save(self, records: Records) -> None:
        try:
            encoded = json.dumps(records, ensure_ascii=False, indent=2)
        except (TypeError, ValueError) as exc:
            raise PersistenceError(
                f"{self.collection}: snapshot is not JSON serialisable: {exc}"
            ) from exc

        temp_path: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                temp_path = handle.name
                handle.write(encoded)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(temp_path, self.path)
            temp_path = None
        except OSError as exc:
            raise PersistenceError(f"{self.collection}: failed to write {self.path}: {exc}") from exc
        finally:
            if temp_path is not None:
                try:
                    os.unlink(temp_path)
                except OSError:
                    logger.debug("Temporary snapshot %s already removed", temp_path)

        logger.debug("Saved %d %s records to %s", len(records), self.collection, self.path)


__all__ = ["JsonFilePersistence"]
