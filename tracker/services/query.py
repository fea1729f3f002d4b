"""Pure filter, search and sort over store snapshots.

Nothing here touches a store: every function takes an immutable snapshot
(``tuple`` of entities) and returns a new tuple.  Identical inputs always
produce identical ordered output because every sort breaks ties by ``id``.
"""

from __future__ import annotations

import calendar
import unicodedata
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Protocol, assert_never

from tracker.schemas.entity import Entity
from tracker.schemas.enums import PRIORITY_TABLES, priority_of
from tracker.schemas.registry import DomainSpec


class SortKey(str, Enum):
    ALPHABETICAL = "alphabetical"
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    DATE = "date"
    PRIORITY = "priority"
    CHILD_COUNT = "child_count"


class SortDirection(str, Enum):
    ASCENDING = "asc"
    DESCENDING = "desc"


DEFAULT_DIRECTIONS: dict[SortKey, SortDirection] = {
    SortKey.ALPHABETICAL: SortDirection.ASCENDING,
    SortKey.CREATED_AT: SortDirection.DESCENDING,
    SortKey.UPDATED_AT: SortDirection.DESCENDING,
    SortKey.DATE: SortDirection.DESCENDING,
    SortKey.PRIORITY: SortDirection.ASCENDING,
    SortKey.CHILD_COUNT: SortDirection.DESCENDING,
}


class Period(str, Enum):
    """Rolling windows offered by list screens."""

    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    ALL = "all"


def alphabetical_key(value: str) -> str:
    """Casefolded, accent-insensitive form of ``value``."""

    decomposed = unicodedata.normalize("NFKD", value)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


def _normalize(value: Any) -> Any:
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, str):
        return value.strip().casefold()
    return value


def _as_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    return value


class Predicate(Protocol):
    def matches(self, entity: Entity, domain: DomainSpec) -> bool: ...


@dataclass(frozen=True, slots=True)
class FacetEquals:
    """Equality on a facet or owner field; strings compare case-insensitively."""

    field: str
    value: Any

    def matches(self, entity: Entity, domain: DomainSpec) -> bool:
        return _normalize(getattr(entity, self.field, None)) == _normalize(self.value)


@dataclass(frozen=True, slots=True)
class DateRange:
    """Inclusive calendar-date window; ``None`` bounds are open."""

    field: str
    start: date | None = None
    end: date | None = None

    def matches(self, entity: Entity, domain: DomainSpec) -> bool:
        value = _as_date(getattr(entity, self.field, None))
        if value is None:
            return False
        if self.start is not None and value < self.start:
            return False
        if self.end is not None and value > self.end:
            return False
        return True

    @classmethod
    def for_period(cls, field: str, period: Period, today: date) -> DateRange:
        match period:
            case Period.TODAY:
                return cls(field, today, today)
            case Period.WEEK:
                return cls(field, today - timedelta(days=7), today)
            case Period.MONTH:
                last_day = calendar.monthrange(today.year, today.month)[1]
                return cls(field, today.replace(day=1), today.replace(day=last_day))
            case Period.ALL:
                return cls(field)
            case _:
                assert_never(period)


@dataclass(frozen=True, slots=True)
class TextSearch:
    """Case-insensitive substring match over the domain's search fields."""

    text: str

    def matches(self, entity: Entity, domain: DomainSpec) -> bool:
        needle = alphabetical_key(self.text.strip())
        if not needle:
            return True
        for field_name in domain.search_fields:
            value = getattr(entity, field_name, None)
            if isinstance(value, Enum):
                value = value.value
            if isinstance(value, str) and needle in alphabetical_key(value):
                return True
        return False


@dataclass(frozen=True, slots=True)
class Archived:
    flag: bool = True

    def matches(self, entity: Entity, domain: DomainSpec) -> bool:
        return bool(getattr(entity, "is_archived", False)) is self.flag


@dataclass(frozen=True, slots=True)
class Favorite:
    flag: bool = True

    def matches(self, entity: Entity, domain: DomainSpec) -> bool:
        return bool(getattr(entity, "is_favorite", False)) is self.flag


class QueryEngine:
    """Filter and sort snapshots of one domain."""

    def __init__(self, domain: DomainSpec) -> None:
        self.domain = domain

    def filter(self, snapshot: Iterable[Entity], predicates: Sequence[Predicate] = ()) -> tuple[Entity, ...]:
        """Return entities matching every predicate, in input order."""

        return tuple(
            entity
            for entity in snapshot
            if all(predicate.matches(entity, self.domain) for predicate in predicates)
        )

    def search(self, snapshot: Iterable[Entity], text: str) -> tuple[Entity, ...]:
        return self.filter(snapshot, [TextSearch(text)])

    def sort(
        self,
        sequence: Iterable[Entity],
        key: SortKey,
        direction: SortDirection | None = None,
        child_counts: Mapping[str, int] | None = None,
        priority_field: str | None = None,
    ) -> tuple[Entity, ...]:
        """Order ``sequence`` by ``key``; ties are broken by ascending ``id``.

        Entities without a value for the key (e.g. no date) go last in
        either direction.  ``priority_field`` picks which prioritized facet
        ``PRIORITY`` orders by; the domain default is used when omitted.
        """

        direction = direction or DEFAULT_DIRECTIONS[key]
        extract = self._key_function(key, child_counts, priority_field)
        by_id = sorted(sequence, key=lambda entity: entity.id)

        present: list[tuple[Any, Entity]] = []
        missing: list[Entity] = []
        for entity in by_id:
            value = extract(entity)
            if value is None:
                missing.append(entity)
            else:
                present.append((value, entity))

        # sort() is stable under reverse=True, so the id order survives for ties.
        present.sort(key=lambda pair: pair[0], reverse=direction is SortDirection.DESCENDING)
        return tuple(entity for _, entity in present) + tuple(missing)

    def run(
        self,
        snapshot: Iterable[Entity],
        predicates: Sequence[Predicate] = (),
        key: SortKey = SortKey.CREATED_AT,
        direction: SortDirection | None = None,
        child_counts: Mapping[str, int] | None = None,
        priority_field: str | None = None,
    ) -> tuple[Entity, ...]:
        """Filter then sort."""

        return self.sort(
            self.filter(snapshot, predicates), key, direction, child_counts, priority_field
        )

    def _key_function(
        self,
        key: SortKey,
        child_counts: Mapping[str, int] | None,
        priority_field: str | None = None,
    ):
        domain = self.domain
        match key:
            case SortKey.ALPHABETICAL:
                return lambda entity: alphabetical_key(domain.title_of(entity))
            case SortKey.CREATED_AT:
                return lambda entity: entity.created_at
            case SortKey.UPDATED_AT:
                return lambda entity: entity.updated_at
            case SortKey.DATE:
                if domain.date_field is None:
                    raise ValueError(f"{domain.collection} has no date field to sort by")
                date_field = domain.date_field
                return lambda entity: _as_date(getattr(entity, date_field))
            case SortKey.PRIORITY:
                priority_field = priority_field or domain.priority_field
                if priority_field is None:
                    raise ValueError(f"{domain.collection} has no priority ordering")
                self._require_prioritized(priority_field)
                return lambda entity: priority_of(getattr(entity, priority_field))
            case SortKey.CHILD_COUNT:
                if child_counts is None:
                    raise ValueError("child_counts is required to sort by child count")
                return lambda entity: child_counts.get(entity.id, 0)
            case _:
                assert_never(key)

    def _require_prioritized(self, field_name: str) -> None:
        domain = self.domain
        model_field = domain.model.model_fields.get(field_name)
        if (
            field_name not in domain.facets
            or model_field is None
            or model_field.annotation not in PRIORITY_TABLES
        ):
            raise ValueError(f"{domain.collection}.{field_name} has no priority ordering")


__all__ = [
    "Archived",
    "DEFAULT_DIRECTIONS",
    "DateRange",
    "Favorite",
    "FacetEquals",
    "Period",
    "Predicate",
    "QueryEngine",
    "SortDirection",
    "SortKey",
    "TextSearch",
    "alphabetical_key",
]
