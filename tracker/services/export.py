"""JSON export of a collection snapshot."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import date, datetime
from pathlib import Path

from tracker.errors import PersistenceError
from tracker.schemas.entity import Entity, utcnow
from tracker.schemas.stats import ExportDocument
from tracker.services.query import DateRange, Period, QueryEngine, SortKey
from tracker.services.statistics import StatisticsEngine

logger = logging.getLogger(__name__)


def export_snapshot(
    statistics: StatisticsEngine,
    snapshot: Sequence[Entity],
    *,
    period: Period = Period.ALL,
    today: date | None = None,
    clock: Callable[[], datetime] = utcnow,
) -> ExportDocument:
    """Build an :class:`ExportDocument` for the entries inside ``period``.

    Entries are ordered by the domain date (newest first) when the domain has
    one, otherwise by creation time.
    """

    domain = statistics.domain
    now = clock()
    today = today or statistics.today()
    engine = QueryEngine(domain)
    predicates = []
    if domain.date_field is not None and period is not Period.ALL:
        predicates.append(DateRange.for_period(domain.date_field, period, today))
    key = SortKey.DATE if domain.date_field is not None else SortKey.CREATED_AT
    entries = engine.run(snapshot, predicates, key)
    return ExportDocument(
        collection=domain.collection,
        time_range=period.value,
        exported_at=now,
        total_entries=len(entries),
        summary=statistics.summary(entries, today),
        entries=[entity.to_record() for entity in entries],
    )


def write_export(document: ExportDocument, directory: Path) -> Path:
    """Write ``document`` as ``<collection>_export_<timestamp>.json``."""

    filename = f"{document.collection}_export_{document.exported_at:%Y%m%d_%H%M%S}.json"
    path = Path(directory) / filename
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(document.model_dump_json(indent=2), encoding="utf-8")
    except OSError as exc:
        raise PersistenceError(f"Could not write export {path}: {exc}") from exc
    logger.info("Exported %d %s entries to %s", document.total_entries, document.collection, path)
    return path


__all__ = ["export_snapshot", "write_export"]
