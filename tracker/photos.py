"""Photo storage collaborator.

Entities only hold photo identifiers; the binary lifecycle lives behind the
:class:`PhotoManager` protocol.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Protocol, runtime_checkable
from uuid import uuid4

logger = logging.getLogger(__name__)

_PHOTO_ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")


@runtime_checkable
class PhotoManager(Protocol):
    """Minimal photo storage surface used by :class:`EntityStore`."""

    def save(self, image_bytes: bytes) -> str:
        """Store ``image_bytes`` and return the new photo identifier."""

    def load(self, photo_id: str) -> bytes | None:
        """Return the stored bytes, or ``None`` when the photo is unknown."""

    def delete(self, photo_id: str) -> None:
        """Remove the photo; unknown identifiers are ignored."""


class FilePhotoManager:
    """Keep photos as ``<photo_id>.jpg`` files inside ``directory``."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def _path_for(self, photo_id: str) -> Path:
        if not _PHOTO_ID_PATTERN.match(photo_id):
            raise ValueError(f"Invalid photo id: {photo_id!r}")
        return self.directory / f"{photo_id}.jpg"

    def save(self, image_bytes: bytes) -> str:
        photo_id = uuid4().hex
        self.directory.mkdir(parents=True, exist_ok=True)
        self._path_for(photo_id).write_bytes(image_bytes)
        logger.debug("Saved photo %s (%d bytes)", photo_id, len(image_bytes))
        return photo_id

    def load(self, photo_id: str) -> bytes | None:
        path = self._path_for(photo_id)
        if not path.exists():
            return None
        return path.read_bytes()

    def delete(self, photo_id: str) -> None:
        self._path_for(photo_id).unlink(missing_ok=True)


__all__ = ["FilePhotoManager", "PhotoManager"]
