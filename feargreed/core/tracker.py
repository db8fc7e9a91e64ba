"""Wires the store, source client and services from a configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from feargreed.core.config import ConfigManager, FearGreedConfig
from feargreed.core.data.repositories import IndexRepository
from feargreed.core.data.storage import DatabaseManager
from feargreed.core.logging import logger
from feargreed.core.monitoring import MetricsCollector, get_metrics_collector
from feargreed.core.services import (
    IndexQueryService,
    IngestionPipeline,
    IngestionScheduler,
    RetentionSweeper,
    SourceClient,
)
from feargreed.core.services.calendars import DateProvider, utc_today

if TYPE_CHECKING:
    import httpx


class FearGreedTracker:
    """Owns every long-lived component of the service."""

    def __init__(
        self,
        config: FearGreedConfig | None = None,
        *,
        db_manager: DatabaseManager | None = None,
        http_client: httpx.AsyncClient | None = None,
        metrics: MetricsCollector | None = None,
        today: DateProvider = utc_today,
    ) -> None:
        self.config = config or ConfigManager().get_config()
        self.metrics = metrics or get_metrics_collector()
        self.db_manager = db_manager or DatabaseManager(self.config.storage.db_path)
        self.repository = IndexRepository(self.db_manager)
        self.source = SourceClient(self.config.source, http_client=http_client, metrics=self.metrics)
        self.pipeline = IngestionPipeline(self.source, self.repository, today=today, metrics=self.metrics)
        self.sweeper = RetentionSweeper(
            self.repository,
            retention_years=self.config.retention.years,
            today=today,
            metrics=self.metrics,
        )
        self.queries = IndexQueryService(self.repository, self.pipeline, self.sweeper, today=today)
        self.scheduler = IngestionScheduler(self.pipeline, self.sweeper, self.config.schedule)

    async def __aenter__(self) -> FearGreedTracker:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Stop the scheduler and release the HTTP client and the store."""

        await self.scheduler.stop()
        await self.source.close()
        await self.repository.close()
        logger.debug("Tracker closed")


__all__ = ["FearGreedTracker"]
