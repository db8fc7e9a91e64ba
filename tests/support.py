"""Payload builders and fakes shared across the test modules."""

from __future__ import annotations

import asyncio
from datetime import date, datetime
from typing import Any

from feargreed.core.models import RawSourceResponse

TODAY = date(2024, 3, 1)


def millis(value: datetime) -> int:
    return int(value.timestamp() * 1000)


def snapshot(score: float | None, rating: str | None, when: datetime | None) -> dict[str, Any]:
    """Summary object as the provider nests it under ``data``/``fear_greed``."""

    payload: dict[str, Any] = {}
    if score is not None:
        payload["score"] = score
    if rating is not None:
        payload["rating"] = rating
    if when is not None:
        payload["timestamp"] = millis(when)
    return payload


def history_payload(points: list[tuple[datetime, float, str]]) -> dict[str, Any]:
    return {
        "fear_and_greed_historical": {
            "timestamp": millis(points[-1][0]) if points else None,
            "score": points[-1][1] if points else None,
            "rating": points[-1][2] if points else None,
            "data": [{"x": millis(when), "y": score, "rating": rating} for when, score, rating in points],
        }
    }


class FakeSource:
    """In-memory stand-in for :class:`SourceClient` used by pipeline tests."""

    def __init__(
        self,
        daily: dict[str, Any] | Exception | None = None,
        history: dict[str, Any] | Exception | None = None,
    ) -> None:
        self.daily = daily
        self.history = history
        self.daily_calls: list[date] = []
        self.history_calls = 0

    async def fetch_daily(self, day: date) -> RawSourceResponse:
        self.daily_calls.append(day)
        await asyncio.sleep(0)
        return self._resolve(self.daily)

    async def fetch_history(self) -> RawSourceResponse:
        self.history_calls += 1
        await asyncio.sleep(0)
        return self._resolve(self.history)

    async def close(self) -> None:
        return None

    @staticmethod
    def _resolve(payload: dict[str, Any] | Exception | None) -> RawSourceResponse:
        if isinstance(payload, Exception):
            raise payload
        return RawSourceResponse.model_validate(payload or {})
