"""Tests for the REST adapter over the query facade."""

from __future__ import annotations

from datetime import UTC, date, datetime

import httpx
import pytest
from fastapi.testclient import TestClient
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry

from feargreed.core.config import FearGreedConfig, ScheduleConfig, SourceConfig
from feargreed.core.data.storage import DatabaseManager
from feargreed.core.monitoring import MetricsCollector
from feargreed.core.tracker import FearGreedTracker
from feargreed.web.app import create_app
from support import TODAY, history_payload, snapshot


def _tracker(handler, db_manager: DatabaseManager | None = None) -> FearGreedTracker:
    config = FearGreedConfig(source=SourceConfig(max_attempts=1), schedule=ScheduleConfig(enabled=False))
    return FearGreedTracker(
        config,
        db_manager=db_manager or DatabaseManager(":memory:"),
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        metrics=MetricsCollector(registry=CollectorRegistry()),
        today=lambda: TODAY,
    )


def _daily_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path.endswith("/graphdata"):
        points = [(datetime(2024, 2, day, 12, tzinfo=UTC), 30.0 + day, "fear") for day in range(1, 11)]
        return httpx.Response(200, json=history_payload(points))
    return httpx.Response(200, json={"fear_greed": snapshot(66.6, "greed", datetime(2024, 3, 1, 8, tzinfo=UTC))})


def _down_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(503)


@pytest.fixture
def client():
    tracker = _tracker(_daily_handler)
    with TestClient(create_app(tracker=tracker)) as test_client:
        yield test_client
    tracker.db_manager.close()


class TestIndexRoutes:
    def test_today_fetches_on_demand(self, client: TestClient) -> None:
        response = client.get("/api/fear-greed/today")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["value"] == 66
        assert body["data"]["label"] == "greed"
        assert body["data"]["record_date"] == "2024-03-01"

    def test_today_not_available_is_404(self) -> None:
        tracker = _tracker(_down_handler)
        with TestClient(create_app(tracker=tracker)) as test_client:
            response = test_client.get("/api/fear-greed/today")

        assert response.status_code == 404
        assert response.json()["success"] is False

    def test_fetch_now_then_history(self, client: TestClient) -> None:
        fetched = client.post("/api/fear-greed/fetch-now")
        again = client.post("/api/fear-greed/fetch-now")
        history = client.get("/api/fear-greed/history", params={"days": 7})

        assert fetched.status_code == 200
        assert fetched.json()["data"]["outcome"] == "inserted"
        assert again.json()["data"]["outcome"] == "already_present"
        assert [row["record_date"] for row in history.json()["data"]] == ["2024-03-01"]

    def test_fetch_now_transport_failure(self) -> None:
        tracker = _tracker(_down_handler)
        with TestClient(create_app(tracker=tracker)) as test_client:
            response = test_client.post("/api/fear-greed/fetch-now")

        assert response.status_code == 502
        assert response.json()["data"]["outcome"] == "transport_error"

    def test_history_with_non_positive_days_is_empty(self, client: TestClient) -> None:
        client.post("/api/fear-greed/fetch-now")

        response = client.get("/api/fear-greed/history", params={"days": 0})

        assert response.status_code == 200
        assert response.json()["data"] == []

    def test_fetch_history_now_and_month(self, client: TestClient) -> None:
        backfill = client.post("/api/fear-greed/fetch-history-now")
        repeat = client.post("/api/fear-greed/fetch-history-now")
        month = client.get("/api/fear-greed/history-by-month", params={"year": 2024, "month": 2})

        assert backfill.json()["data"]["saved_count"] == 10
        assert repeat.json()["data"]["saved_count"] == 0
        assert [row["value"] for row in month.json()["data"]] == list(range(31, 41))

    def test_invalid_month_is_422(self, client: TestClient) -> None:
        response = client.get("/api/fear-greed/history-by-month", params={"year": 2024, "month": 13})

        assert response.status_code == 422
        assert response.json()["error"] == "INVALID_QUERY"

    def test_cleanup_old_data(self, client: TestClient) -> None:
        client.post("/api/fear-greed/fetch-history-now")

        response = client.post("/api/fear-greed/cleanup-old-data", params={"before": "2024-02-06"})

        assert response.status_code == 200
        assert response.json()["data"]["deleted"] == 5

    def test_store_failure_is_503(self) -> None:
        manager = DatabaseManager(":memory:")
        tracker = _tracker(_daily_handler, manager)
        with TestClient(create_app(tracker=tracker)) as test_client:
            manager.close()
            response = test_client.get("/api/fear-greed/history", params={"days": 7})

        assert response.status_code == 503
        assert response.json()["error"] == "STORE_ERROR"


class TestOperationalRoutes:
    def test_health_reports_store_and_runs(self, client: TestClient) -> None:
        client.post("/api/fear-greed/fetch-now")

        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "healthy"
        assert data["record_count"] == 1
        assert data["latest_record_date"] == date(2024, 3, 1).isoformat()
        assert data["last_success"]["daily_ingest"] is not None

    def test_health_unavailable_store(self) -> None:
        manager = DatabaseManager(":memory:")
        tracker = _tracker(_daily_handler, manager)
        with TestClient(create_app(tracker=tracker)) as test_client:
            manager.close()
            response = test_client.get("/health")

        assert response.status_code == 503
        assert response.json()["data"]["store"] is False

    def test_metrics_endpoint_exposes_prometheus_payload(self, client: TestClient) -> None:
        client.post("/api/fear-greed/fetch-now")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"] == CONTENT_TYPE_LATEST
        assert "feargreed_ingestion_runs_total" in response.text
        assert "feargreed_source_request_seconds" in response.text
