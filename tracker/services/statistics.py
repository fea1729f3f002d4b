"""Aggregates for dashboards and detail screens.

Every function is pure over a snapshot.  Averages report an explicit
insufficient-data result instead of a number when fewer than ``min_samples``
values qualify, so callers never see NaN.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable, Sequence
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Literal

from tracker.schemas.entity import Entity, local_today, utcnow
from tracker.schemas.enums import PRIORITY_TABLES, MoodType
from tracker.schemas.registry import DomainSpec
from tracker.schemas.stats import Average, DistributionBucket, StatsSummary
from tracker.services.query import DateRange
from tracker.settings import DEFAULT_AVERAGE_MIN_SAMPLES

UNCATEGORIZED = "uncategorized"

Metric = str | Callable[[Entity], float | int | None]
ExtremumMode = Literal["max", "min"]


def _facet_label(value: Any) -> str:
    if isinstance(value, Enum):
        value = value.value
    if value is None or value == "":
        return UNCATEGORIZED
    return str(value)


def _metric_value(entity: Entity, metric: Metric) -> float | None:
    """Resolve ``metric`` to a number; ordinal enums map to ``-priority``."""

    if callable(metric):
        value = metric(entity)
    else:
        value = getattr(entity, metric, None)
    if isinstance(value, MoodType):
        return float(value.score)
    if isinstance(value, Enum) and type(value) in PRIORITY_TABLES:
        # Best priority is 0, so negate to make "higher is better".
        return float(-PRIORITY_TABLES[type(value)][value])
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _local_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.astimezone().date() if value.tzinfo is not None else value.date()
    return value


def percentage(part: int | float, whole: int | float) -> float:
    """Return ``part`` as a percentage of ``whole``; ``0.0`` when ``whole`` is zero."""

    if whole == 0:
        return 0.0
    return part / whole * 100.0


class StatisticsEngine:
    """Compute aggregates for one domain."""

    def __init__(
        self,
        domain: DomainSpec,
        *,
        min_samples: int = DEFAULT_AVERAGE_MIN_SAMPLES,
        clock: Callable[[], datetime] = utcnow,
        today: Callable[[], date] | None = None,
    ) -> None:
        if min_samples < 1:
            raise ValueError("min_samples must be at least 1")
        self.domain = domain
        self.min_samples = min_samples
        self._clock = clock
        self._today = today or (lambda: local_today(clock))

    percentage = staticmethod(percentage)

    def today(self) -> date:
        """Calendar date the store also uses to reject future dates."""

        return self._today()

    def count_by(self, entities: Iterable[Entity], facet: str) -> dict[str, int]:
        """Count entities per facet value; values with no entities are omitted."""

        counts = Counter(_facet_label(getattr(entity, facet, None)) for entity in entities)
        return dict(counts)

    def average(
        self,
        entities: Iterable[Entity],
        field: Metric,
        date_range: DateRange | None = None,
    ) -> Average:
        """Mean of ``field`` over entities inside ``date_range``."""

        values: list[float] = []
        for entity in entities:
            if date_range is not None and not date_range.matches(entity, self.domain):
                continue
            value = _metric_value(entity, field)
            if value is not None:
                values.append(value)
        if len(values) < self.min_samples:
            return Average(value=None, sample_size=len(values), minimum=self.min_samples)
        return Average(
            value=sum(values) / len(values),
            sample_size=len(values),
            minimum=self.min_samples,
        )

    def extremum(
        self,
        entities: Iterable[Entity],
        metric: Metric,
        mode: ExtremumMode = "max",
    ) -> Entity | None:
        """Best (``max``) or worst (``min``) entity by ``metric``.

        Ties go to the earliest ``created_at``, then the lowest ``id``.
        """

        if mode not in ("max", "min"):
            raise ValueError(f"Unknown extremum mode: {mode!r}")
        best: tuple[float, Entity] | None = None
        for entity in entities:
            value = _metric_value(entity, metric)
            if value is None:
                continue
            if best is None:
                best = (value, entity)
                continue
            current_value, current = best
            better = value > current_value if mode == "max" else value < current_value
            tied = value == current_value and (entity.created_at, entity.id) < (
                current.created_at,
                current.id,
            )
            if better or tied:
                best = (value, entity)
        return None if best is None else best[1]

    def age_in_days(self, reference: date | datetime, as_of: date | datetime | None = None) -> int:
        """Whole days elapsed since ``reference``, truncated toward zero."""

        if as_of is None:
            as_of = self._clock() if isinstance(reference, datetime) else self._today()
        if isinstance(reference, datetime) and isinstance(as_of, datetime):
            delta = as_of - reference
        else:
            delta = _local_date(as_of) - _local_date(reference)
        if delta < timedelta(0):
            raise ValueError("reference lies after as_of")
        return delta.days

    def distribution(self, entities: Iterable[Entity], facet: str) -> list[DistributionBucket]:
        """Histogram of ``facet`` sorted by descending count, ties alphabetical."""

        counts = self.count_by(entities, facet)
        total = sum(counts.values())
        ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        return [
            DistributionBucket(label=label, count=count, percentage=percentage(count, total))
            for label, count in ordered
        ]

    # -- Calendar based metrics ----------------------------------------------

    def _dates(self, entities: Iterable[Entity]) -> list[date]:
        field = self.domain.date_field
        if field is None:
            return sorted({_local_date(entity.created_at) for entity in entities})
        return sorted(
            {_local_date(value) for entity in entities if (value := getattr(entity, field)) is not None}
        )

    def current_streak(self, entities: Iterable[Entity], today: date | None = None) -> int:
        """Consecutive days with an entry ending today (or yesterday)."""

        days = set(self._dates(entities))
        cursor = today or self._today()
        if cursor not in days:
            cursor -= timedelta(days=1)
        streak = 0
        while cursor in days:
            streak += 1
            cursor -= timedelta(days=1)
        return streak

    def longest_streak(self, entities: Iterable[Entity]) -> int:
        longest = run = 0
        previous: date | None = None
        for day in self._dates(entities):
            run = run + 1 if previous is not None and day - previous == timedelta(days=1) else 1
            longest = max(longest, run)
            previous = day
        return longest

    def monthly_counts(self, entities: Iterable[Entity]) -> dict[str, int]:
        field = self.domain.date_field
        counts: Counter[str] = Counter()
        for entity in entities:
            value = getattr(entity, field) if field is not None else entity.created_at
            if value is not None:
                counts[_local_date(value).strftime("%Y-%m")] += 1
        return dict(sorted(counts.items()))

    def days_since_first(self, entities: Iterable[Entity], today: date | None = None) -> int:
        """Days from the earliest record to ``today``; ``0`` without records."""

        dates = self._dates(entities)
        if not dates:
            return 0
        return self.age_in_days(dates[0], today or self._today())

    def average_per_day(self, entities: Sequence[Entity], today: date | None = None) -> float:
        """Records per day since the first record, counting the first day."""

        if not entities:
            return 0.0
        return len(entities) / (self.days_since_first(entities, today) + 1)

    def summary(self, entities: Sequence[Entity], today: date | None = None) -> StatsSummary:
        dates = self._dates(entities)
        return StatsSummary(
            collection=self.domain.collection,
            total=len(entities),
            favorites=sum(1 for e in entities if getattr(e, "is_favorite", False)),
            archived=sum(1 for e in entities if getattr(e, "is_archived", False)),
            facets={facet: self.count_by(entities, facet) for facet in self.domain.facets},
            first_recorded=dates[0] if dates else None,
            last_recorded=dates[-1] if dates else None,
            current_streak=self.current_streak(entities, today),
            longest_streak=self.longest_streak(entities),
        )


__all__ = ["ExtremumMode", "Metric", "StatisticsEngine", "UNCATEGORIZED", "percentage"]
