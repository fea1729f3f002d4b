from __future__ import annotations

from pathlib import Path

import pytest

from tracker.photos import FilePhotoManager, PhotoManager


def test_save_load_delete(tmp_path: Path) -> None:
    manager = FilePhotoManager(tmp_path / "photos")

    photo_id = manager.save(b"\xff\xd8jpeg")

    assert isinstance(manager, PhotoManager)
    assert manager.load(photo_id) == b"\xff\xd8jpeg"
    assert (tmp_path / "photos" / f"{photo_id}.jpg").exists()

    manager.delete(photo_id)
    manager.delete(photo_id)

    assert manager.load(photo_id) is None


def test_rejects_path_like_identifiers(tmp_path: Path) -> None:
    manager = FilePhotoManager(tmp_path)

    with pytest.raises(ValueError):
        manager.load("../etc/passwd")
