"""Retention sweep removing records older than the configured horizon."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from feargreed.core.exceptions import StoreError
from feargreed.core.logging import log_context, logger
from feargreed.core.monitoring import MetricsCollector, get_metrics_collector
from feargreed.core.services.calendars import DateProvider, utc_now, utc_today, years_before

if TYPE_CHECKING:
    from feargreed.core.data.repositories import IndexRepository

RETENTION_JOB = "retention"
DEFAULT_RETENTION_YEARS = 5


class RetentionSweeper:
    """Deletes every record dated before a cutoff, atomically."""

    def __init__(
        self,
        repository: IndexRepository,
        *,
        retention_years: int = DEFAULT_RETENTION_YEARS,
        today: DateProvider = utc_today,
        metrics: MetricsCollector | None = None,
    ) -> None:
        if retention_years < 1:
            raise ValueError("retention_years must be at least 1")
        self.repository = repository
        self.retention_years = retention_years
        self._today = today
        self._metrics = metrics or get_metrics_collector()

    def default_cutoff(self) -> date:
        """Policy cutoff, re-evaluated against the current date on every call."""

        return years_before(self._today(), self.retention_years)

    async def purge_older_than(self, cutoff: date) -> int:
        """Delete all records with ``record_date < cutoff`` and return how many went."""

        started_at = utc_now()
        with log_context(job=RETENTION_JOB, cutoff=cutoff.isoformat()):
            logger.info("Deleting Fear & Greed records older than {}", cutoff.isoformat())
            deleted = await self.repository.delete_before(cutoff)
            finished_at = utc_now()
            logger.info("Deleted {} records older than {}", deleted, cutoff.isoformat())
            self._metrics.record_purge(deleted, success_at=finished_at.timestamp())
            try:
                await self.repository.record_run(
                    RETENTION_JOB,
                    "purged",
                    started_at=started_at,
                    finished_at=finished_at,
                    affected_rows=deleted,
                    detail=f"cutoff={cutoff.isoformat()}",
                )
            except StoreError as exc:
                logger.bind(error_code=exc.error_code).warning("Could not record retention run: {}", exc.message)
        return deleted

    async def sweep(self) -> int:
        """Apply the default policy: drop records older than ``retention_years``."""

        return await self.purge_older_than(self.default_cutoff())


__all__ = ["DEFAULT_RETENTION_YEARS", "RETENTION_JOB", "RetentionSweeper"]
