"""Read-side facade used by the CLI and web layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING

from feargreed.core.exceptions import InvalidQueryError
from feargreed.core.logging import logger
from feargreed.core.services.calendars import DateProvider, utc_today, window_start
from feargreed.core.services.ingestion import DAILY_JOB, HISTORY_JOB, IngestOutcome
from feargreed.core.services.retention import RETENTION_JOB

if TYPE_CHECKING:
    from feargreed.core.data.repositories import IndexRepository
    from feargreed.core.data.storage import RunRecord
    from feargreed.core.models import IndexRecord
    from feargreed.core.services.ingestion import BackfillResult, IngestionPipeline, IngestResult
    from feargreed.core.services.retention import RetentionSweeper

_SUCCESS_OUTCOMES: dict[str, tuple[str, ...]] = {
    DAILY_JOB: (IngestOutcome.INSERTED.value, IngestOutcome.ALREADY_PRESENT.value),
    HISTORY_JOB: (IngestOutcome.INSERTED.value, IngestOutcome.ALREADY_PRESENT.value),
    RETENTION_JOB: ("purged",),
}


@dataclass(slots=True)
class StoreStatus:
    """Record count and last successful run per job."""

    record_count: int
    latest_record_date: date | None
    last_success: dict[str, RunRecord | None] = field(default_factory=dict)


class IndexQueryService:
    """Query facade over the index store.

    "No data" is always an empty result (``None`` or ``[]``); store failures
    propagate as :class:`~feargreed.core.exceptions.StoreError` so callers can
    tell the two apart.
    """

    def __init__(
        self,
        repository: IndexRepository,
        pipeline: IngestionPipeline,
        sweeper: RetentionSweeper,
        *,
        today: DateProvider = utc_today,
    ) -> None:
        self.repository = repository
        self.pipeline = pipeline
        self.sweeper = sweeper
        self._today = today

    async def get_or_create_today(self) -> IndexRecord | None:
        """Return today's record, fetching it once on demand if it is missing."""

        today = self._today()
        record = await self.repository.find_by_date(today)
        if record is not None:
            return record

        logger.info("Index for {} not stored yet; triggering on-demand fetch", today.isoformat())
        await self.pipeline.ingest_today()
        record = await self.repository.find_by_date(today)
        if record is None:
            logger.warning("Index for {} still unavailable after on-demand fetch", today.isoformat())
        return record

    async def get_last_n_days(self, days: int) -> list[IndexRecord]:
        """Records dated within the last ``days`` days including today, ascending."""

        if days <= 0:
            return []
        start_date = window_start(self._today(), days)
        return await self.repository.find_since(start_date)

    async def get_by_month(self, year: int, month: int) -> list[IndexRecord]:
        """Records of the given calendar month, ascending."""

        if not 1 <= month <= 12:
            raise InvalidQueryError(f"month must be within 1-12, got {month}", field="month")
        return await self.repository.find_by_month(year, month)

    async def trigger_fetch(self) -> IngestResult:
        """Run the daily ingest now."""

        return await self.pipeline.ingest_today()

    async def trigger_backfill(self) -> BackfillResult:
        """Run the historical backfill; ``saved_count`` is the number of new records."""

        return await self.pipeline.ingest_history()

    async def trigger_cleanup(self, cutoff: date | None = None) -> int:
        """Run the retention sweep, by default with the policy cutoff."""

        if cutoff is None:
            return await self.sweeper.sweep()
        return await self.sweeper.purge_older_than(cutoff)

    async def status(self) -> StoreStatus:
        """Summarise the store for health and status reporting."""

        count = await self.repository.count()
        last_success = {
            job: await self.repository.last_run(job, outcomes) for job, outcomes in _SUCCESS_OUTCOMES.items()
        }
        return StoreStatus(
            record_count=count,
            latest_record_date=await self.repository.latest_date(),
            last_success=last_success,
        )


__all__ = ["IndexQueryService", "StoreStatus"]
