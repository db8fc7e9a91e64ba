"""Tests for the HTTP source client using ``httpx.MockTransport``."""

from __future__ import annotations

from datetime import UTC, date, datetime

import httpx
import pytest

from feargreed.core.exceptions import IncompleteSourceDataError, TransportError
from feargreed.core.services.normalizer import extract_current, extract_history
from support import history_payload, snapshot

NOON = datetime(2024, 3, 1, 12, tzinfo=UTC)


class TestSourceClientRequests:
    @pytest.mark.asyncio
    async def test_daily_request_url_and_headers(self, source_factory) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"fear_greed": snapshot(42, "fear", NOON)})

        client = source_factory(handler)
        response = await client.fetch_daily(date(2024, 3, 1))
        await client.close()

        assert response.fear_greed is not None
        assert response.fear_greed.score == 42
        request = seen[0]
        assert str(request.url) == "https://production.dataviz.cnn.io/index/fearandgreed/graphdata/2024-03-01"
        assert request.headers["User-Agent"].startswith("Mozilla/5.0")
        assert request.headers["Accept"] == "application/json"
        assert request.headers["Accept-Language"] == "en-US,en;q=0.9"
        assert request.headers["Referer"] == "https://edition.cnn.com/markets/fear-and-greed"

    @pytest.mark.asyncio
    async def test_history_request_url(self, source_factory) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, json={"fear_and_greed_historical": {"data": []}})

        client = source_factory(handler)
        await client.fetch_history()

        assert seen == ["https://production.dataviz.cnn.io/index/fearandgreed/graphdata"]

    @pytest.mark.asyncio
    async def test_unknown_keys_are_ignored(self, source_factory) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"put_call_options": {"score": 1}, "data": snapshot(50, "neutral", NOON)})

        response = await source_factory(handler).fetch_daily(date(2024, 3, 1))

        assert response.data is not None
        assert response.data.rating == "neutral"


class TestSourceClientFailures:
    @pytest.mark.asyncio
    async def test_server_error_is_retried_then_succeeds(self, source_factory) -> None:
        calls = {"count": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["count"] += 1
            if calls["count"] < 3:
                return httpx.Response(503)
            return httpx.Response(200, json={"data": snapshot(50, "neutral", NOON)})

        response = await source_factory(handler, max_attempts=3).fetch_daily(date(2024, 3, 1))

        assert calls["count"] == 3
        assert response.data is not None

    @pytest.mark.asyncio
    async def test_persistent_server_error_raises_transport_error(self, source_factory, metrics) -> None:
        calls = {"count": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["count"] += 1
            return httpx.Response(500)

        with pytest.raises(TransportError) as excinfo:
            await source_factory(handler, max_attempts=3).fetch_daily(date(2024, 3, 1))

        assert excinfo.value.status_code == 500
        assert calls["count"] == 3
        assert metrics.registry.get_sample_value("feargreed_source_failures_total", {"endpoint": "daily"}) == 3

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self, source_factory) -> None:
        calls = {"count": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["count"] += 1
            return httpx.Response(418)

        with pytest.raises(TransportError) as excinfo:
            await source_factory(handler).fetch_daily(date(2024, 3, 1))

        assert excinfo.value.status_code == 418
        assert not excinfo.value.retryable
        assert calls["count"] == 1

    @pytest.mark.asyncio
    async def test_timeout_raises_transport_error(self, source_factory) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(TransportError) as excinfo:
            await source_factory(handler, max_attempts=2).fetch_history()

        assert excinfo.value.status_code is None
        assert excinfo.value.retryable

    @pytest.mark.asyncio
    async def test_non_json_body_is_incomplete(self, source_factory) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>blocked</html>", headers={"content-type": "text/html"})

        with pytest.raises(IncompleteSourceDataError):
            await source_factory(handler).fetch_daily(date(2024, 3, 1))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [[], {}, "text"])
    async def test_non_object_payload_is_incomplete(self, source_factory, body) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=body)

        with pytest.raises(IncompleteSourceDataError):
            await source_factory(handler).fetch_daily(date(2024, 3, 1))

    @pytest.mark.asyncio
    async def test_only_invalid_section_is_unusable(self, source_factory) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"data": {"score": "high", "rating": "greed"}})

        response = await source_factory(handler).fetch_daily(date(2024, 3, 1))

        assert response.data is None
        assert response.is_empty()
        with pytest.raises(IncompleteSourceDataError):
            extract_current(response)


class TestMalformedSections:
    @pytest.mark.asyncio
    async def test_bad_lower_priority_section_keeps_complete_data(self, source_factory) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={"data": snapshot(55, "neutral", NOON), "market_momentum_sp500": {"score": "n/a"}},
            )

        response = await source_factory(handler).fetch_daily(date(2024, 3, 1))

        assert response.market_momentum_sp500 is None
        reading = extract_current(response)
        assert reading.value == 55
        assert reading.origin == "data"

    @pytest.mark.asyncio
    async def test_bad_previous_close_does_not_drop_snapshot(self, source_factory) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"data": {**snapshot(61, "greed", NOON), "previous_close": "n/a"}})

        response = await source_factory(handler).fetch_daily(date(2024, 3, 1))

        assert response.data is not None
        assert response.data.previous_close is None
        assert extract_current(response).value == 61

    @pytest.mark.asyncio
    async def test_bad_historical_summary_keeps_points(self, source_factory) -> None:
        payload = history_payload([(NOON, 40.0, "fear")])
        payload["fear_and_greed_historical"]["timestamp"] = "garbage"
        payload["fear_and_greed_historical"]["score"] = "n/a"

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=payload)

        response = await source_factory(handler).fetch_history()

        series = response.fear_and_greed_historical
        assert series is not None
        assert series.timestamp is None
        assert series.score is None
        assert [reading.value for reading in extract_history(response).readings] == [40]
