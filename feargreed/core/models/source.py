"""Parse targets for the provider's JSON payloads.

The provider nests the same logical value under several keys and mixes epoch
milliseconds with ISO-8601 strings for timestamps; these models accept both and
leave the choice of location to the normalizer.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    ValidationError,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
)

from feargreed.core.exceptions import ErrorCode
from feargreed.core.logging import logger


def _from_epoch_millis(millis: float) -> datetime:
    try:
        return datetime.fromtimestamp(millis / 1000, tz=UTC)
    except (OverflowError, OSError) as exc:
        raise ValueError(f"epoch milliseconds out of range: {millis}") from exc


def parse_source_timestamp(value: Any) -> datetime | None:
    """Convert epoch milliseconds or an ISO-8601 string to an aware UTC datetime."""

    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError("boolean is not a timestamp")
    if isinstance(value, (int, float)):
        return _from_epoch_millis(value)
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        try:
            return _from_epoch_millis(float(text))
        except ValueError:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    else:
        raise ValueError(f"unsupported timestamp type: {type(value).__name__}")
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


class _SourceModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


def _drop_invalid(owner: str, value: Any, handler: ValidatorFunctionWrapHandler, info: ValidationInfo) -> Any:
    """Validate one field; a malformed value becomes ``None`` instead of failing the whole payload."""

    try:
        return handler(value)
    except ValidationError as exc:
        logger.bind(error_code=ErrorCode.INCOMPLETE_SOURCE_DATA.value).warning(
            "Ignoring malformed {}.{}: {}",
            owner,
            info.field_name,
            "; ".join(error["msg"] for error in exc.errors()),
        )
        return None


class SourceSnapshot(_SourceModel):
    """Summary object found under ``data``, ``fear_greed`` or ``market_momentum_sp500``."""

    score: float | None = None
    rating: str | None = None
    timestamp: datetime | None = None
    previous_close: float | None = None
    previous_week: float | None = None
    previous_month: float | None = None
    previous_year: float | None = None

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> datetime | None:
        return parse_source_timestamp(value)

    @field_validator("previous_close", "previous_week", "previous_month", "previous_year", mode="wrap")
    @classmethod
    def _lenient_previous(cls, value: Any, handler: ValidatorFunctionWrapHandler, info: ValidationInfo) -> Any:
        return _drop_invalid(cls.__name__, value, handler, info)


class HistoricalPoint(_SourceModel):
    """Single ``{x, y, rating}`` entry of the historical series."""

    x: datetime | None = None
    y: float | None = None
    rating: str | None = None

    @field_validator("x", mode="before")
    @classmethod
    def _parse_x(cls, value: Any) -> datetime | None:
        return parse_source_timestamp(value)


class HistoricalSeries(_SourceModel):
    """``fear_and_greed_historical`` wrapper; points stay raw and are validated one by one."""

    timestamp: datetime | None = None
    score: float | None = None
    rating: str | None = None
    data: list[Any] | None = None

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> datetime | None:
        return parse_source_timestamp(value)

    # 汇总字段仅供参考，解析失败不影响 data
    @field_validator("timestamp", "score", "rating", mode="wrap")
    @classmethod
    def _lenient_summary(cls, value: Any, handler: ValidatorFunctionWrapHandler, info: ValidationInfo) -> Any:
        return _drop_invalid(cls.__name__, value, handler, info)


class RawSourceResponse(_SourceModel):
    """Top-level payload returned by both the daily and the bulk endpoint.

    Each section is validated on its own; a malformed section is logged and
    treated as absent so the remaining sections stay usable.
    """

    data: SourceSnapshot | None = None
    fear_greed: SourceSnapshot | None = None
    market_momentum_sp500: SourceSnapshot | None = None
    fear_and_greed_historical: HistoricalSeries | None = None

    @field_validator("data", "fear_greed", "market_momentum_sp500", "fear_and_greed_historical", mode="wrap")
    @classmethod
    def _lenient_section(cls, value: Any, handler: ValidatorFunctionWrapHandler, info: ValidationInfo) -> Any:
        return _drop_invalid(cls.__name__, value, handler, info)

    def is_empty(self) -> bool:
        return not any(
            (self.data, self.fear_greed, self.market_momentum_sp500, self.fear_and_greed_historical)
        )


__all__ = [
    "HistoricalPoint",
    "HistoricalSeries",
    "RawSourceResponse",
    "SourceSnapshot",
    "parse_source_timestamp",
]
