"""Pydantic schemas returned by the statistics engine and exporter."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Average(BaseModel):
    """Average of a numeric field, or an explicit insufficient-data marker."""

    model_config = ConfigDict(frozen=True)

    value: float | None = Field(
        None, description="Mean of the qualifying values; ``None`` when data is insufficient."
    )
    sample_size: int = Field(..., ge=0)
    minimum: int = Field(..., ge=1, description="Samples required before a value is reported.")

    @property
    def is_sufficient(self) -> bool:
        return self.value is not None


class DistributionBucket(BaseModel):
    """Single histogram bar."""

    model_config = ConfigDict(frozen=True)

    label: str
    count: int = Field(..., ge=1)
    percentage: float = Field(..., ge=0.0, le=100.0)


class StatsSummary(BaseModel):
    """Dashboard friendly KPIs for one collection."""

    collection: str
    total: int = Field(..., ge=0)
    favorites: int = Field(0, ge=0)
    archived: int = Field(0, ge=0)
    facets: dict[str, dict[str, int]] = Field(default_factory=dict)
    first_recorded: date | None = None
    last_recorded: date | None = None
    current_streak: int = Field(0, ge=0)
    longest_streak: int = Field(0, ge=0)


class ExportDocument(BaseModel):
    """JSON export of a collection snapshot."""

    collection: str
    time_range: str
    exported_at: datetime
    total_entries: int = Field(..., ge=0)
    summary: StatsSummary
    entries: list[dict[str, Any]] = Field(default_factory=list)


__all__ = ["Average", "DistributionBucket", "ExportDocument", "StatsSummary"]
