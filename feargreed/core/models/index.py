"""Persisted daily index record and the canonical reading extracted from the source."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

INDEX_MIN_VALUE = 0
INDEX_MAX_VALUE = 100


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class IndexRecord(BaseModel):
    """One stored Fear & Greed value; at most one per calendar day."""

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    record_date: date
    value: int
    label: str = Field(min_length=1)
    source_timestamp: datetime
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime | None = None

    @field_validator("source_timestamp", "created_at", "updated_at")
    @classmethod
    def _ensure_utc(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        return _as_utc(value)

    @property
    def is_suspect(self) -> bool:
        """True when the value falls outside the documented 0-100 range."""

        return not INDEX_MIN_VALUE <= self.value <= INDEX_MAX_VALUE

    def to_row(self) -> dict[str, Any]:
        """Flat JSON-friendly mapping used by the CLI and web layers."""

        return {
            "id": self.id,
            "record_date": self.record_date.isoformat(),
            "value": self.value,
            "label": self.label,
            "source_timestamp": self.source_timestamp.isoformat(),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(slots=True, frozen=True)
class IndexReading:
    """Canonical ``(value, label, source_timestamp)`` tuple produced by the normalizer."""

    value: int
    label: str
    source_timestamp: datetime
    origin: str

    @property
    def record_date(self) -> date:
        """UTC calendar date of the source timestamp."""

        return self.source_timestamp.astimezone(UTC).date()

    def to_record(self, record_date: date | None = None) -> IndexRecord:
        """Build a not-yet-persisted record keyed by ``record_date`` (defaults to the derived date)."""

        return IndexRecord(
            record_date=record_date or self.record_date,
            value=self.value,
            label=self.label,
            source_timestamp=self.source_timestamp,
        )


__all__ = ["INDEX_MAX_VALUE", "INDEX_MIN_VALUE", "IndexReading", "IndexRecord"]
