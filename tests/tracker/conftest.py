"""Shared fixtures: deterministic clock, in-memory stores and a wired workspace."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest

from tests.support.doubles import (
    FIXED_TODAY,
    FailingPersistence,
    RecordingPhotoManager,
    TickingClock,
)
from tracker.schemas.registry import DomainSpec
from tracker.services.store import EntityStore
from tracker.services.workspace import Workspace, build_workspace
from tracker.settings import TrackerSettings


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def photos() -> RecordingPhotoManager:
    return RecordingPhotoManager()


@pytest.fixture
def make_store(
    clock: TickingClock, photos: RecordingPhotoManager
) -> Callable[..., EntityStore[Any]]:
    """Build a store over a :class:`FailingPersistence` adapter."""

    def _make(domain: DomainSpec, persistence: FailingPersistence | None = None) -> EntityStore[Any]:
        return EntityStore(
            domain,
            persistence or FailingPersistence(domain.collection),
            clock=clock,
            today=lambda: FIXED_TODAY,
            photo_manager=photos,
        )

    return _make


@pytest.fixture
def memory_settings(tmp_path: Path) -> TrackerSettings:
    return TrackerSettings(storage_backend="memory", data_dir=tmp_path)


@pytest.fixture
def workspace(
    memory_settings: TrackerSettings, clock: TickingClock, photos: RecordingPhotoManager
) -> Iterator[Workspace]:
    built = build_workspace(
        memory_settings,
        clock=clock,
        today=lambda: FIXED_TODAY,
        photo_manager=photos,
    )
    yield built
    built.close()
