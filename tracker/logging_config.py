"""Logging bootstrap shared by applications embedding the tracker core."""

from __future__ import annotations

import logging

from tracker.settings import TrackerSettings, get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(settings: TrackerSettings | None = None) -> None:
    """Configure the root logger using the level from ``settings``."""

    resolved = settings or get_settings()
    logging.basicConfig(level=resolved.log_level_numeric, format=LOG_FORMAT)
    logging.getLogger(__name__).debug(
        "Logging configured (level=%s, backend=%s)",
        resolved.log_level.upper(),
        resolved.storage_backend,
    )


__all__ = ["LOG_FORMAT", "configure_logging"]
