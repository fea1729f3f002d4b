"""Base pydantic model shared by every user-created record."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, date, datetime
from typing import Annotated, Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

NAME_MAX_LENGTH = 100
COMMENT_MAX_LENGTH = 500
TEXT_MAX_LENGTH = 4000

RequiredName = Annotated[str, Field(min_length=1, max_length=NAME_MAX_LENGTH)]
"""Non-blank display name (whitespace is stripped before the length check)."""

OptionalText = Annotated[str, Field(max_length=TEXT_MAX_LENGTH)]
PhotoIds = tuple[str, ...]


def utcnow() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(UTC)


def local_today(clock: Callable[[], datetime] = utcnow) -> date:
    """Calendar date of ``clock()`` in the local timezone."""
    return clock().astimezone().date()


def new_entity_id() -> str:
    """Return a fresh opaque identifier."""
    return uuid4().hex


class Entity(BaseModel):
    """Immutable snapshot of a single record.

    Instances are frozen: attribute assignment raises and every sequence field
    is a tuple, so a value handed out by a store can never be used to mutate
    store state.  ``updated_at`` defaults to ``created_at`` for new records.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        str_strip_whitespace=True,
        validate_default=True,
    )

    id: str = Field(default_factory=new_entity_id, min_length=1, max_length=64)
    created_at: datetime
    updated_at: datetime

    @model_validator(mode="before")
    @classmethod
    def _default_timestamps(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        payload = dict(data)
        if payload.get("created_at") is None:
            payload["created_at"] = utcnow()
        if payload.get("updated_at") is None:
            payload["updated_at"] = payload["created_at"]
        return payload

    @field_validator("created_at", "updated_at")
    @classmethod
    def _ensure_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    @model_validator(mode="after")
    def _check_timestamp_order(self) -> Entity:
        if self.updated_at < self.created_at:
            raise ValueError("updated_at must not precede created_at")
        return self

    def content_fields(self) -> dict[str, Any]:
        """Return every field except ``updated_at`` for change detection."""

        return self.model_dump(exclude={"updated_at"})

    def to_record(self) -> dict[str, Any]:
        """Return the JSON-compatible raw form handed to persistence."""

        return self.model_dump(mode="json")


__all__ = [
    "COMMENT_MAX_LENGTH",
    "Entity",
    "NAME_MAX_LENGTH",
    "OptionalText",
    "PhotoIds",
    "RequiredName",
    "TEXT_MAX_LENGTH",
    "local_today",
    "new_entity_id",
    "utcnow",
]
