"""Tests for current-value and historical-series extraction."""

from __future__ import annotations

from datetime import UTC, date, datetime

import pytest

from feargreed.core.exceptions import IncompleteSourceDataError
from feargreed.core.models import RawSourceResponse
from feargreed.core.services import CURRENT_VALUE_STRATEGIES, extract_current, extract_history, truncate_score
from support import history_payload, millis, snapshot

NOON = datetime(2024, 3, 1, 12, 0, tzinfo=UTC)


def _response(payload: dict) -> RawSourceResponse:
    return RawSourceResponse.model_validate(payload)


class TestTruncateScore:
    def test_truncates_toward_zero(self) -> None:
        assert truncate_score(37.9) == 37
        assert truncate_score(37.0) == 37
        assert truncate_score(99.999) == 99
        assert truncate_score(-0.5) == 0

    def test_rejects_non_finite(self) -> None:
        with pytest.raises(ValueError):
            truncate_score(float("nan"))


class TestExtractCurrent:
    def test_strategy_order(self) -> None:
        assert [strategy.name for strategy in CURRENT_VALUE_STRATEGIES] == [
            "data",
            "fear_greed",
            "market_momentum_sp500",
        ]

    def test_prefers_data_when_complete(self) -> None:
        response = _response(
            {
                "data": snapshot(60.2, "greed", NOON),
                "fear_greed": snapshot(10, "extreme fear", NOON),
                "market_momentum_sp500": snapshot(20, "fear", NOON),
            }
        )

        reading = extract_current(response)

        assert reading.value == 60
        assert reading.label == "greed"
        assert reading.origin == "data"

    def test_falls_back_to_fear_greed_when_data_incomplete(self) -> None:
        response = _response(
            {
                "data": snapshot(60, None, NOON),
                "fear_greed": snapshot(45.5, "neutral", NOON),
                "market_momentum_sp500": snapshot(20, "fear", NOON),
            }
        )

        reading = extract_current(response)

        assert reading.origin == "fear_greed"
        assert reading.value == 45

    def test_falls_back_to_market_momentum(self) -> None:
        response = _response(
            {
                "fear_greed": snapshot(45, "neutral", None),
                "market_momentum_sp500": snapshot(20.9, "fear", NOON),
            }
        )

        reading = extract_current(response)

        assert reading.origin == "market_momentum_sp500"
        assert reading.value == 20
        assert reading.source_timestamp == NOON

    def test_all_locations_incomplete_raises(self) -> None:
        response = _response(
            {
                "data": {"rating": "greed"},
                "fear_greed": snapshot(None, "neutral", NOON),
                "market_momentum_sp500": snapshot(20, "", NOON),
            }
        )

        with pytest.raises(IncompleteSourceDataError) as excinfo:
            extract_current(response)

        assert excinfo.value.details["tried"] == ["data", "fear_greed", "market_momentum_sp500"]

    def test_empty_response_raises(self) -> None:
        with pytest.raises(IncompleteSourceDataError):
            extract_current(_response({}))

    def test_accepts_iso_timestamp(self) -> None:
        response = _response({"fear_greed": {"score": 55.1, "rating": "neutral", "timestamp": "2024-03-01T23:30:00+00:00"}})

        reading = extract_current(response)

        assert reading.source_timestamp == datetime(2024, 3, 1, 23, 30, tzinfo=UTC)
        assert reading.record_date == date(2024, 3, 1)

    def test_out_of_range_value_is_kept(self) -> None:
        reading = extract_current(_response({"data": snapshot(104.2, "extreme greed", NOON)}))

        assert reading.value == 104
        assert reading.to_record().is_suspect


class TestExtractHistory:
    def test_returns_points_in_source_order(self) -> None:
        points = [
            (datetime(2024, 2, 27, 12, tzinfo=UTC), 30.4, "fear"),
            (datetime(2024, 2, 28, 12, tzinfo=UTC), 51.9, "neutral"),
            (datetime(2024, 2, 29, 12, tzinfo=UTC), 77.0, "extreme greed"),
        ]

        extraction = extract_history(_response(history_payload(points)))

        assert [reading.value for reading in extraction.readings] == [30, 51, 77]
        assert [reading.record_date for reading in extraction.readings] == [
            date(2024, 2, 27),
            date(2024, 2, 28),
            date(2024, 2, 29),
        ]
        assert extraction.skipped == []

    def test_malformed_point_is_skipped(self) -> None:
        payload = history_payload([(datetime(2024, 2, 27, 12, tzinfo=UTC), 30.0, "fear")])
        payload["fear_and_greed_historical"]["data"].extend(
            [
                {"x": millis(datetime(2024, 2, 28, tzinfo=UTC)), "rating": "neutral"},
                {"x": "not-a-date", "y": 10, "rating": "fear"},
                {"x": millis(datetime(2024, 2, 29, tzinfo=UTC)), "y": 40.0, "rating": ""},
                "garbage",
                {"x": millis(datetime(2024, 3, 1, tzinfo=UTC)), "y": 62.3, "rating": "greed"},
            ]
        )

        extraction = extract_history(_response(payload))

        assert [reading.value for reading in extraction.readings] == [30, 62]
        assert [skipped.index for skipped in extraction.skipped] == [1, 2, 3, 4]

    def test_missing_wrapper_raises(self) -> None:
        with pytest.raises(IncompleteSourceDataError):
            extract_history(_response({"fear_greed": snapshot(50, "neutral", NOON)}))

    def test_empty_point_list_raises(self) -> None:
        with pytest.raises(IncompleteSourceDataError):
            extract_history(_response({"fear_and_greed_historical": {"score": 50, "data": []}}))
