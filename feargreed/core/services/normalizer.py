"""Extract canonical index readings from the provider's payloads.

The provider publishes the current value under one of several keys, so the
current-value lookup is an ordered list of strategies tried in sequence. The
historical series is validated point by point; one bad point is skipped and
logged without affecting the rest.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from feargreed.core.exceptions import IncompleteSourceDataError
from feargreed.core.logging import logger
from feargreed.core.models import (
    HistoricalPoint,
    IndexReading,
    RawSourceResponse,
    SourceSnapshot,
)


def truncate_score(score: float) -> int:
    """Truncate toward zero; ``37.9`` becomes ``37`` and ``-0.5`` becomes ``0``."""

    if not math.isfinite(score):
        raise ValueError(f"score is not a finite number: {score}")
    return math.trunc(score)


@dataclass(frozen=True)
class ExtractionStrategy:
    """Named accessor returning one candidate snapshot from a response."""

    name: str
    locate: Callable[[RawSourceResponse], SourceSnapshot | None]

    def extract(self, response: RawSourceResponse) -> IndexReading | None:
        """Return a reading when the located snapshot has score, rating and timestamp."""

        snapshot = self.locate(response)
        if snapshot is None or snapshot.score is None or not snapshot.rating or snapshot.timestamp is None:
            return None
        try:
            value = truncate_score(snapshot.score)
        except ValueError:
            return None
        return IndexReading(value=value, label=snapshot.rating, source_timestamp=snapshot.timestamp, origin=self.name)


CURRENT_VALUE_STRATEGIES: tuple[ExtractionStrategy, ...] = (
    ExtractionStrategy("data", lambda response: response.data),
    ExtractionStrategy("fear_greed", lambda response: response.fear_greed),
    ExtractionStrategy("market_momentum_sp500", lambda response: response.market_momentum_sp500),
)


@dataclass(slots=True, frozen=True)
class SkippedPoint:
    """A historical point rejected for data-quality reasons."""

    index: int
    reason: str
    raw: Any = None


@dataclass(slots=True)
class HistoryExtraction:
    """Ordered readings of the historical series plus the points that were skipped."""

    readings: list[IndexReading] = field(default_factory=list)
    skipped: list[SkippedPoint] = field(default_factory=list)


def extract_current(
    response: RawSourceResponse,
    strategies: tuple[ExtractionStrategy, ...] = CURRENT_VALUE_STRATEGIES,
) -> IndexReading:
    """Return the reading from the first strategy whose snapshot is complete.

    Raises:
        IncompleteSourceDataError: none of the candidate locations qualified.
    """

    for strategy in strategies:
        reading = strategy.extract(response)
        if reading is not None:
            return reading
    raise IncompleteSourceDataError(
        "No complete score/rating/timestamp in any candidate location",
        details={"tried": [strategy.name for strategy in strategies]},
    )


def _parse_point(index: int, raw: Any) -> tuple[IndexReading | None, SkippedPoint | None]:
    if not isinstance(raw, dict):
        return None, SkippedPoint(index, "not an object", raw)
    try:
        point = HistoricalPoint.model_validate(raw)
    except ValidationError as exc:
        return None, SkippedPoint(index, f"invalid field: {exc.errors()[0]['loc']}", raw)
    if point.x is None or point.y is None or not point.rating:
        return None, SkippedPoint(index, "missing x, y or rating", raw)
    try:
        value = truncate_score(point.y)
    except ValueError as exc:
        return None, SkippedPoint(index, str(exc), raw)
    return IndexReading(value=value, label=point.rating, source_timestamp=point.x, origin="fear_and_greed_historical"), None


def extract_history(response: RawSourceResponse) -> HistoryExtraction:
    """Return the historical series as readings in source order.

    Raises:
        IncompleteSourceDataError: the wrapper or its point list is missing or empty.
    """

    series = response.fear_and_greed_historical
    if series is None or not series.data:
        raise IncompleteSourceDataError("Response has no fear_and_greed_historical.data points")

    extraction = HistoryExtraction()
    for index, raw in enumerate(series.data):
        reading, skipped = _parse_point(index, raw)
        if skipped is not None:
            logger.warning("Skipping historical point #{}: {}", index, skipped.reason)
            extraction.skipped.append(skipped)
            continue
        if reading is not None:
            extraction.readings.append(reading)
    return extraction


__all__ = [
    "CURRENT_VALUE_STRATEGIES",
    "ExtractionStrategy",
    "HistoryExtraction",
    "SkippedPoint",
    "extract_current",
    "extract_history",
    "truncate_score",
]
