"""Centralized configuration management for the tracker core."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables defined in a local .env file before instantiating
# the settings singleton.
load_dotenv()

# -- Application-wide constants -------------------------------------------------

DEFAULT_DATA_DIR = "./data"
DEFAULT_STORAGE_BACKEND = "json"
DEFAULT_SQLITE_FILENAME = "tracker.db"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_AVERAGE_MIN_SAMPLES = 3

StorageBackend = Literal["json", "sqlite", "memory"]


class TrackerSettings(BaseSettings):
    """Typed configuration surface built on top of ``pydantic-settings``.

    Values are read from the environment (or a local ``.env`` file) and
    expose helpers such as :attr:`resolved_database_url` so that persistence
    factories never repeat path handling.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    data_dir: Path = Field(
        default=Path(DEFAULT_DATA_DIR),
        alias="DATA_DIR",
        description="Directory holding JSON snapshots, the SQLite file and photos.",
    )
    storage_backend: StorageBackend = Field(
        default=DEFAULT_STORAGE_BACKEND,
        alias="STORAGE_BACKEND",
        description=(
            "Persistence backend for every collection. ``json`` writes one file"
            " per collection, ``sqlite`` stores rows through SQLAlchemy and"
            " ``memory`` keeps nothing across restarts."
        ),
    )
    database_url: str | None = Field(
        default=None,
        alias="DATABASE_URL",
        description=(
            "Optional SQLAlchemy URL used by the ``sqlite`` backend. Defaults to"
            " a SQLite file inside ``data_dir``."
        ),
    )
    log_level: str = Field(
        default=DEFAULT_LOG_LEVEL,
        alias="LOG_LEVEL",
        description="Root logging level (e.g. INFO, DEBUG, WARNING).",
    )
    average_min_samples: int = Field(
        default=DEFAULT_AVERAGE_MIN_SAMPLES,
        alias="AVERAGE_MIN_SAMPLES",
        ge=1,
        description="Minimum qualifying entries before an average is reported.",
    )
    debug: bool = Field(
        default=False,
        alias="DEBUG",
        description="Treat referential integrity violations as fatal.",
    )

    @property
    def resolved_database_url(self) -> str:
        """Return the SQLAlchemy URL after applying the data-dir fallback."""

        if self.database_url:
            return self.database_url
        return f"sqlite:///{self.data_dir / DEFAULT_SQLITE_FILENAME}"

    @property
    def photos_dir(self) -> Path:
        """Directory used by :class:`tracker.photos.FilePhotoManager`."""

        return self.data_dir / "photos"

    def collection_path(self, collection: str) -> Path:
        """Return the JSON snapshot path for ``collection``."""

        return self.data_dir / f"{collection}.json"

    @property
    def log_level_numeric(self) -> int:
        """Translate ``log_level`` into the numeric constant expected by logging."""

        candidate = logging.getLevelName(self.log_level.upper())
        if isinstance(candidate, int):
            return candidate
        return logging.INFO


@lru_cache(maxsize=1)
def get_settings() -> TrackerSettings:
    """Return a cached instance of :class:`TrackerSettings`."""

    return TrackerSettings()


__all__ = [
    "DEFAULT_AVERAGE_MIN_SAMPLES",
    "DEFAULT_DATA_DIR",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_STORAGE_BACKEND",
    "StorageBackend",
    "TrackerSettings",
    "get_settings",
]
