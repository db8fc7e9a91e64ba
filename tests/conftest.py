"""Pytest configuration for the feargreed test suite."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import UTC, date, datetime

import httpx
import pytest
from prometheus_client import CollectorRegistry

from feargreed.core.config import SourceConfig
from feargreed.core.data.repositories import IndexRepository
from feargreed.core.data.storage import DatabaseManager
from feargreed.core.models import IndexRecord
from feargreed.core.monitoring import MetricsCollector
from feargreed.core.patterns import ExponentialBackoffRetry, RetryConfig
from feargreed.core.services import SourceClient

from support import TODAY


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register command-line options for controlling integration tests."""

    parser.addoption(
        "--feargreed-run-integration",
        action="store_true",
        default=False,
        help="Run feargreed integration tests that call the live index provider.",
    )


def pytest_configure(config: pytest.Config) -> None:
    """Register the integration marker for feargreed tests."""

    config.addinivalue_line(
        "markers",
        "integration: marks feargreed tests requiring network access",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip integration tests unless explicitly requested."""

    if config.getoption("--feargreed-run-integration"):
        return

    skip_integration = pytest.mark.skip(reason="integration tests require --feargreed-run-integration")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


async def _no_sleep(_: float) -> None:
    return None


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def metrics() -> MetricsCollector:
    return MetricsCollector(registry=CollectorRegistry())


@pytest.fixture
def db_manager() -> Iterator[DatabaseManager]:
    manager = DatabaseManager(":memory:")
    yield manager
    manager.close()


@pytest.fixture
def repository(db_manager: DatabaseManager) -> IndexRepository:
    return IndexRepository(db_manager)


@pytest.fixture
def make_record() -> Callable[..., IndexRecord]:
    def _make(record_date: date, value: int = 50, label: str = "neutral") -> IndexRecord:
        return IndexRecord(
            record_date=record_date,
            value=value,
            label=label,
            source_timestamp=datetime(record_date.year, record_date.month, record_date.day, 12, tzinfo=UTC),
        )

    return _make


@pytest.fixture
def source_factory(metrics: MetricsCollector) -> Callable[..., SourceClient]:
    """Build a :class:`SourceClient` backed by ``httpx.MockTransport``."""

    def _build(handler: Callable[[httpx.Request], httpx.Response], *, max_attempts: int = 3) -> SourceClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        retry = ExponentialBackoffRetry(RetryConfig(max_attempts=max_attempts, jitter=False), sleep=_no_sleep)
        return SourceClient(
            SourceConfig(max_attempts=max_attempts),
            http_client=http_client,
            retry=retry,
            metrics=metrics,
        )

    return _build
