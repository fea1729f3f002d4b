"""Error taxonomy shared by the entity stores and their collaborators.

Every failure raised by :mod:`tracker` derives from :class:`TrackerError` so the
presentation layer can catch a single base class and branch on
:attr:`TrackerError.error_type`.  Validation failures carry a list of
:class:`ErrorDetail` rows, one per offending field, mirroring the structured
validation payloads used by API error responses.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

__all__ = [
    "ErrorDetail",
    "ErrorType",
    "NotFoundError",
    "PersistenceError",
    "ReferentialError",
    "TrackerError",
    "ValidationError",
    "details_from_pydantic",
]


class ErrorType(str, Enum):
    """Categories of errors surfaced by the store layer."""

    VALIDATION_ERROR = "validation_error"
    NOT_FOUND = "not_found"
    PERSISTENCE_ERROR = "persistence_error"
    REFERENTIAL_ERROR = "referential_error"


class ErrorDetail(BaseModel):
    """Details for a single failed field."""

    field: str = Field(..., description="Field that failed validation")
    message: str = Field(..., description="Validation error message")
    value: Any = Field(None, description="Value that failed validation")


class TrackerError(Exception):
    """Base class for every error raised by the tracker core."""

    error_type: ErrorType = ErrorType.VALIDATION_ERROR

    def __init__(
        self,
        message: str,
        *,
        details: Sequence[ErrorDetail] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details: list[ErrorDetail] = list(details or [])

    def __str__(self) -> str:
        if not self.details:
            return self.message
        fields = ", ".join(f"{detail.field}: {detail.message}" for detail in self.details)
        return f"{self.message} ({fields})"


class ValidationError(TrackerError):
    """Empty or too-long field, invalid date, duplicate key or unknown owner."""

    error_type = ErrorType.VALIDATION_ERROR

    @classmethod
    def for_field(cls, field: str, message: str, value: Any = None) -> ValidationError:
        """Build an error describing a single offending field."""

        return cls(message, details=[ErrorDetail(field=field, message=message, value=value)])


class NotFoundError(TrackerError):
    """Raised when a mutation targets an id the store does not hold."""

    error_type = ErrorType.NOT_FOUND

    def __init__(self, collection: str, entity_id: str) -> None:
        super().__init__(f"{collection}: no entity with id {entity_id!r}")
        self.collection = collection
        self.entity_id = entity_id


class PersistenceError(TrackerError):
    """Durable write or read failure (I/O, encoding, corrupt data)."""

    error_type = ErrorType.PERSISTENCE_ERROR


class ReferentialError(TrackerError):
    """An index entry points at an entity that no longer exists."""

    error_type = ErrorType.REFERENTIAL_ERROR


def details_from_pydantic(exc: PydanticValidationError) -> list[ErrorDetail]:
    """Translate pydantic's error list into :class:`ErrorDetail` rows."""

    details: list[ErrorDetail] = []
    for error in exc.errors():
        location: Iterable[Any] = error.get("loc", ())
        field = ".".join(str(part) for part in location) or "__root__"
        details.append(
            ErrorDetail(field=field, message=error.get("msg", "invalid value"), value=error.get("input"))
        )
    return details
