"""Periodic triggers: daily ingest and monthly retention sweep (UTC)."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from feargreed.core.config import ScheduleConfig
from feargreed.core.logging import log_context, logger
from feargreed.core.services.calendars import Clock, utc_now

if TYPE_CHECKING:
    from feargreed.core.services.ingestion import IngestionPipeline
    from feargreed.core.services.retention import RetentionSweeper

Sleeper = Callable[[float], Awaitable[Any]]


def next_daily_run(now: datetime, *, hour: int, minute: int) -> datetime:
    """Next occurrence of ``hour:minute`` strictly after ``now``."""

    candidate = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


def next_monthly_run(now: datetime, *, day: int, hour: int, minute: int) -> datetime:
    """Next occurrence of ``day`` ``hour:minute`` strictly after ``now``."""

    candidate = now.replace(day=day, hour=hour, minute=minute, second=0, microsecond=0)
    if candidate <= now:
        if candidate.month == 12:
            candidate = candidate.replace(year=candidate.year + 1, month=1)
        else:
            candidate = candidate.replace(month=candidate.month + 1)
    return candidate


class IngestionScheduler:
    """Runs the daily ingest and the monthly sweep on their own fixed schedules.

    A failing job is logged and the loop carries on to its next slot; a missed
    daily run is recovered by the next one or by an on-demand fetch.
    """

    def __init__(
        self,
        pipeline: IngestionPipeline,
        sweeper: RetentionSweeper,
        config: ScheduleConfig | None = None,
        *,
        clock: Clock = utc_now,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.pipeline = pipeline
        self.sweeper = sweeper
        self.config = config or ScheduleConfig()
        self._clock = clock
        self._sleep = sleep
        self._tasks: list[asyncio.Task[None]] = []

    def next_daily(self) -> datetime:
        return next_daily_run(self._clock(), hour=self.config.daily_hour, minute=self.config.daily_minute)

    def next_sweep(self) -> datetime:
        return next_monthly_run(
            self._clock(),
            day=self.config.sweep_day,
            hour=self.config.sweep_hour,
            minute=self.config.sweep_minute,
        )

    async def run_job(self, name: str, job: Callable[[], Awaitable[Any]]) -> bool:
        """Run one job, logging instead of raising on failure."""

        with log_context(job=name):
            try:
                await job()
            except Exception as exc:
                logger.opt(exception=exc).error("Scheduled job {} failed: {}", name, exc)
                return False
        return True

    async def _sleep_until(self, target: datetime) -> None:
        while True:
            remaining = (target - self._clock()).total_seconds()
            if remaining <= 0:
                return
            await self._sleep(min(300.0, remaining))

    async def _loop(self, name: str, next_run: Callable[[], datetime], job: Callable[[], Awaitable[Any]]) -> None:
        while True:
            target = next_run()
            logger.info("Next {} run scheduled at {}", name, target.isoformat())
            await self._sleep_until(target)
            await self.run_job(name, job)

    async def run_forever(self) -> None:
        """Run both schedules until cancelled."""

        if self.config.run_on_startup:
            await self.run_job("daily_ingest", self.pipeline.ingest_today)
        await asyncio.gather(
            self._loop("daily_ingest", self.next_daily, self.pipeline.ingest_today),
            self._loop("retention", self.next_sweep, self.sweeper.sweep),
        )

    def start(self) -> asyncio.Task[None]:
        """Start :meth:`run_forever` as a background task on the running loop."""

        task = asyncio.get_running_loop().create_task(self.run_forever())
        self._tasks.append(task)
        return task

    async def stop(self) -> None:
        """Cancel background tasks started with :meth:`start`."""

        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks.clear()


__all__ = ["IngestionScheduler", "next_daily_run", "next_monthly_run"]
