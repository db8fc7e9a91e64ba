"""Read commands: today's value, recent history, a month, store status."""

from __future__ import annotations

import typer

from feargreed.core.models import IndexRecord
from feargreed.core.services import StoreStatus

from . import runtime
from .constants import NO_DATA_EXIT_CODE
from .formatters import RECORD_COLUMNS
from .utils import emit_error, render_rows, run_command

STATUS_COLUMNS = ["job", "last_success", "outcome", "affected_rows"]


def register(app: typer.Typer) -> None:
    """Register the read commands on the provided application."""

    app.command("today")(today_command)
    app.command("history")(history_command)
    app.command("month")(month_command)
    app.command("status")(status_command)


def _rows(records: list[IndexRecord]) -> list[dict[str, object]]:
    return [record.to_row() for record in records]


def today_command(ctx: typer.Context) -> None:
    """Show today's index value, fetching it once if it is not stored yet."""

    async def _run() -> IndexRecord | None:
        async with runtime.create_tracker(ctx) as tracker:
            return await tracker.queries.get_or_create_today()

    record = run_command(_run)
    if record is None:
        emit_error("Today's Fear & Greed index is not available", "NO_DATA")
        raise typer.Exit(code=NO_DATA_EXIT_CODE)
    render_rows(ctx, [record.to_row()], columns=RECORD_COLUMNS)


def history_command(
    ctx: typer.Context,
    days: int = typer.Option(7, "--days", "-d", help="Number of days back, today included."),
) -> None:
    """List the records of the last N days in ascending date order."""

    async def _run() -> list[IndexRecord]:
        async with runtime.create_tracker(ctx) as tracker:
            return await tracker.queries.get_last_n_days(days)

    render_rows(ctx, _rows(run_command(_run)), columns=RECORD_COLUMNS)


def month_command(
    ctx: typer.Context,
    year: int = typer.Option(..., "--year", "-y", help="Calendar year."),
    month: int = typer.Option(..., "--month", "-m", help="Calendar month (1-12)."),
) -> None:
    """List the records of one calendar month in ascending date order."""

    async def _run() -> list[IndexRecord]:
        async with runtime.create_tracker(ctx) as tracker:
            return await tracker.queries.get_by_month(year, month)

    render_rows(ctx, _rows(run_command(_run)), columns=RECORD_COLUMNS)


def status_command(ctx: typer.Context) -> None:
    """Show the record count and the last successful run of each job."""

    async def _run() -> StoreStatus:
        async with runtime.create_tracker(ctx) as tracker:
            return await tracker.queries.status()

    status = run_command(_run)
    latest = status.latest_record_date.isoformat() if status.latest_record_date else "-"
    typer.echo(f"records: {status.record_count}  latest: {latest}", err=True)
    rows = []
    for job, run in status.last_success.items():
        rows.append(
            {
                "job": job,
                "last_success": run.finished_at.isoformat() if run else None,
                "outcome": run.outcome if run else None,
                "affected_rows": run.affected_rows if run else None,
            }
        )
    render_rows(ctx, rows, columns=STATUS_COLUMNS)


__all__ = ["register"]
