"""Pytest configuration helpers for the tracker core.

The ``pytest`` plugin system automatically imports ``tests.conftest``. We use
that behavior to make sure the repository root is importable and that no
developer ``.env`` leaks into the settings under test.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from tests import _ensure_repo_on_path

_TRACKER_ENV_VARS = (
    "DATA_DIR",
    "STORAGE_BACKEND",
    "DATABASE_URL",
    "LOG_LEVEL",
    "AVERAGE_MIN_SAMPLES",
    "DEBUG",
)


def pytest_configure(config: pytest.Config) -> None:
    """Hook executed by pytest prior to running any tests."""

    _ensure_repo_on_path()


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Run every test against default settings inside a scratch directory."""

    for name in _TRACKER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)

    from tracker.settings import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
