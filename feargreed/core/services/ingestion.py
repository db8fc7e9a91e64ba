"""Ingestion pipeline: fetch, normalize, dedupe by day, insert.

Both entry points are safe to call repeatedly and concurrently. The per-day
existence check avoids needless network calls; the store's unique constraint on
``record_date`` is the authoritative guard, and losing that race is reported
as ``ALREADY_PRESENT`` rather than an error.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from time import perf_counter
from typing import TYPE_CHECKING
from uuid import uuid4

from feargreed.core.exceptions import (
    DuplicateDateError,
    FearGreedError,
    IncompleteSourceDataError,
    StoreError,
    TransportError,
)
from feargreed.core.logging import log_context, logger
from feargreed.core.monitoring import MetricsCollector, get_metrics_collector
from feargreed.core.services.calendars import DateProvider, utc_now, utc_today
from feargreed.core.services.normalizer import HistoryExtraction, extract_current, extract_history

if TYPE_CHECKING:
    from datetime import datetime

    from feargreed.core.data.repositories import IndexRepository
    from feargreed.core.models import IndexReading, IndexRecord
    from feargreed.core.services.source_client import SourceClient

DAILY_JOB = "daily_ingest"
HISTORY_JOB = "history_backfill"


class IngestOutcome(str, Enum):
    """Result variants of a single ingestion attempt."""

    INSERTED = "inserted"
    ALREADY_PRESENT = "already_present"
    INCOMPLETE = "incomplete"
    TRANSPORT_ERROR = "transport_error"
    STORE_ERROR = "store_error"

    @property
    def succeeded(self) -> bool:
        return self in (IngestOutcome.INSERTED, IngestOutcome.ALREADY_PRESENT)


@dataclass(slots=True, frozen=True)
class IngestResult:
    """Outcome of :meth:`IngestionPipeline.ingest_today`."""

    outcome: IngestOutcome
    record_date: date
    record: IndexRecord | None = None
    detail: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.outcome.succeeded


@dataclass(slots=True, frozen=True)
class BackfillResult:
    """Outcome of :meth:`IngestionPipeline.ingest_history`."""

    batch_id: str
    outcome: IngestOutcome
    saved_count: int = 0
    already_present: int = 0
    skipped_points: int = 0
    duration_ms: float = 0.0
    detail: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.outcome.succeeded


def _checked_record(reading: IndexReading, record_date: date | None = None) -> IndexRecord:
    record = reading.to_record(record_date)
    if record.is_suspect:
        logger.warning("Index value {} for {} is outside 0-100; storing as-is", record.value, record.record_date.isoformat())
    return record


class IngestionPipeline:
    """Orchestrates the source client, the normalizer and the index repository."""

    def __init__(
        self,
        source: SourceClient,
        repository: IndexRepository,
        *,
        today: DateProvider = utc_today,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.source = source
        self.repository = repository
        self._today = today
        self._metrics = metrics or get_metrics_collector()

    async def ingest_today(self) -> IngestResult:
        """Store today's (UTC) value unless the day already has one."""

        today = self._today()
        started_at = utc_now()
        with log_context(job=DAILY_JOB, record_date=today.isoformat()):
            result = await self._ingest_day(today)
            await self._record_run(
                DAILY_JOB,
                result.outcome,
                started_at,
                affected_rows=1 if result.outcome is IngestOutcome.INSERTED else 0,
                detail=result.detail,
            )
        return result

    async def _ingest_day(self, today: date) -> IngestResult:
        try:
            existing = await self.repository.find_by_date(today)
        except StoreError as exc:
            self._log_failure("Could not check for an existing record", exc)
            return IngestResult(IngestOutcome.STORE_ERROR, today, detail=exc.message)

        if existing is not None:
            logger.info("Fear & Greed index for {} already stored; skipping fetch", today.isoformat())
            return IngestResult(IngestOutcome.ALREADY_PRESENT, today, existing)

        try:
            response = await self.source.fetch_daily(today)
            reading = extract_current(response)
        except TransportError as exc:
            self._log_failure("Fetching today's index failed", exc)
            return IngestResult(IngestOutcome.TRANSPORT_ERROR, today, detail=exc.message)
        except IncompleteSourceDataError as exc:
            logger.bind(error_code=exc.error_code).warning(
                "No complete index value for {}: {}", today.isoformat(), exc.message
            )
            return IngestResult(IngestOutcome.INCOMPLETE, today, detail=exc.message)

        try:
            record = await self.repository.save(_checked_record(reading, today))
        except DuplicateDateError:
            logger.info("Index for {} was saved concurrently by another writer", today.isoformat())
            return IngestResult(IngestOutcome.ALREADY_PRESENT, today, await self._lookup_quietly(today))
        except StoreError as exc:
            self._log_failure("Saving today's index failed", exc)
            return IngestResult(IngestOutcome.STORE_ERROR, today, detail=exc.message)

        logger.info(
            "Saved Fear & Greed index for {}: value={} label={} (from {})",
            today.isoformat(),
            record.value,
            record.label,
            reading.origin,
        )
        return IngestResult(IngestOutcome.INSERTED, today, record)

    async def ingest_history(self) -> BackfillResult:
        """Fetch the full historical series and insert every day not yet stored."""

        batch_id = uuid4().hex
        start = perf_counter()
        started_at = utc_now()
        with log_context(job=HISTORY_JOB, batch_id=batch_id):
            logger.info("Fetching full Fear & Greed history")
            try:
                response = await self.source.fetch_history()
                extraction = extract_history(response)
            except TransportError as exc:
                self._log_failure("Fetching the historical series failed", exc)
                result = BackfillResult(batch_id, IngestOutcome.TRANSPORT_ERROR, detail=exc.message)
            except IncompleteSourceDataError as exc:
                logger.bind(error_code=exc.error_code).warning("Historical series unusable: {}", exc.message)
                result = BackfillResult(batch_id, IngestOutcome.INCOMPLETE, detail=exc.message)
            else:
                logger.info(
                    "Found {} historical points ({} skipped as incomplete)",
                    len(extraction.readings),
                    len(extraction.skipped),
                )
                result = await self._store_series(batch_id, extraction, start)

            await self._record_run(
                HISTORY_JOB,
                result.outcome,
                started_at,
                affected_rows=result.saved_count,
                detail=result.detail,
            )
        return result

    async def _store_series(self, batch_id: str, extraction: HistoryExtraction, start: float) -> BackfillResult:
        saved = 0
        already_present = 0
        seen: set[date] = set()
        failure: StoreError | None = None

        for reading in extraction.readings:
            day = reading.record_date
            if day in seen:
                already_present += 1
                logger.debug("Historical point for {} collapses onto an earlier point; skipping", day.isoformat())
                continue
            seen.add(day)

            try:
                if await self.repository.exists_for_date(day):
                    already_present += 1
                    logger.debug("Historical index for {} already exists; skipping", day.isoformat())
                    continue
                await self.repository.save(_checked_record(reading))
            except DuplicateDateError:
                already_present += 1
                continue
            except StoreError as exc:
                self._log_failure("Saving historical index failed; stopping batch", exc)
                failure = exc
                break
            saved += 1
            logger.debug("Saved historical index for {}: value={} label={}", day.isoformat(), reading.value, reading.label)

        duration_ms = (perf_counter() - start) * 1000
        if failure is not None:
            outcome = IngestOutcome.STORE_ERROR
        elif saved:
            outcome = IngestOutcome.INSERTED
        else:
            outcome = IngestOutcome.ALREADY_PRESENT
        logger.info(
            "Processed historical series: saved {} new, {} already present, {} skipped",
            saved,
            already_present,
            len(extraction.skipped),
        )
        return BackfillResult(
            batch_id=batch_id,
            outcome=outcome,
            saved_count=saved,
            already_present=already_present,
            skipped_points=len(extraction.skipped),
            duration_ms=duration_ms,
            detail=failure.message if failure else None,
        )

    async def _lookup_quietly(self, day: date) -> IndexRecord | None:
        try:
            return await self.repository.find_by_date(day)
        except StoreError as exc:
            self._log_failure("Could not re-read concurrently saved record", exc)
            return None

    async def _record_run(
        self,
        job: str,
        outcome: IngestOutcome,
        started_at: datetime,
        *,
        affected_rows: int,
        detail: str | None,
    ) -> None:
        finished_at = utc_now()
        self._metrics.record_run(
            job,
            outcome.value,
            inserted=affected_rows,
            success_at=finished_at.timestamp() if outcome.succeeded else None,
        )
        try:
            await self.repository.record_run(
                job,
                outcome.value,
                started_at=started_at,
                finished_at=finished_at,
                affected_rows=affected_rows,
                detail=detail,
            )
        except StoreError as exc:
            logger.bind(error_code=exc.error_code).warning("Could not record {} run: {}", job, exc.message)

    @staticmethod
    def _log_failure(message: str, exc: FearGreedError) -> None:
        logger.bind(error_code=exc.error_code).error("{}: {}", message, exc.message)


__all__ = [
    "BackfillResult",
    "DAILY_JOB",
    "HISTORY_JOB",
    "IngestOutcome",
    "IngestResult",
    "IngestionPipeline",
]
