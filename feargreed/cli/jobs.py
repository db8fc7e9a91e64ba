"""Job commands: manual fetch, backfill, cleanup and the long-running modes."""

from __future__ import annotations

from datetime import date

import typer
import uvicorn

from feargreed.core.exceptions import ConfigError
from feargreed.core.logging import logger
from feargreed.core.services import BackfillResult, IngestOutcome, IngestResult
from feargreed.web.app import create_app

from . import runtime
from .constants import NO_DATA_EXIT_CODE, STORE_EXIT_CODE, VALIDATION_EXIT_CODE
from .utils import emit_error, render_rows, run_command

FETCH_COLUMNS = ["record_date", "outcome", "value", "label", "detail"]
BACKFILL_COLUMNS = ["batch_id", "outcome", "saved_count", "already_present", "skipped_points", "duration_ms"]


def register(app: typer.Typer) -> None:
    """Register the job commands on the provided application."""

    app.command("fetch")(fetch_command)
    app.command("backfill")(backfill_command)
    app.command("cleanup")(cleanup_command)
    app.command("schedule")(schedule_command)
    app.command("serve")(serve_command)


def _exit_for(outcome: IngestOutcome) -> None:
    if outcome is IngestOutcome.STORE_ERROR:
        raise typer.Exit(code=STORE_EXIT_CODE)
    if not outcome.succeeded:
        raise typer.Exit(code=NO_DATA_EXIT_CODE)


def _parse_date(value: str | None, param_hint: str) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise typer.BadParameter(f"Expected YYYY-MM-DD, got '{value}'", param_hint=param_hint) from exc


def fetch_command(ctx: typer.Context) -> None:
    """Ingest today's value now (no-op when it is already stored)."""

    async def _run() -> IngestResult:
        async with runtime.create_tracker(ctx) as tracker:
            return await tracker.queries.trigger_fetch()

    result = run_command(_run)
    record = result.record
    render_rows(
        ctx,
        [
            {
                "record_date": result.record_date.isoformat(),
                "outcome": result.outcome.value,
                "value": record.value if record else None,
                "label": record.label if record else None,
                "detail": result.detail,
            }
        ],
        columns=FETCH_COLUMNS,
    )
    if not result.succeeded:
        emit_error(result.detail or "Fetch failed", result.outcome.value.upper())
    _exit_for(result.outcome)


def backfill_command(ctx: typer.Context) -> None:
    """Fetch the full historical series and store every missing day."""

    async def _run() -> BackfillResult:
        async with runtime.create_tracker(ctx) as tracker:
            return await tracker.queries.trigger_backfill()

    result = run_command(_run)
    render_rows(
        ctx,
        [
            {
                "batch_id": result.batch_id,
                "outcome": result.outcome.value,
                "saved_count": result.saved_count,
                "already_present": result.already_present,
                "skipped_points": result.skipped_points,
                "duration_ms": round(result.duration_ms, 1),
            }
        ],
        columns=BACKFILL_COLUMNS,
    )
    if not result.succeeded:
        emit_error(result.detail or "Backfill failed", result.outcome.value.upper())
    _exit_for(result.outcome)


def cleanup_command(
    ctx: typer.Context,
    before: str | None = typer.Option(
        None,
        "--before",
        help="Delete records dated before this day (YYYY-MM-DD). Defaults to the retention policy.",
    ),
) -> None:
    """Delete records older than the retention horizon (or ``--before``)."""

    cutoff = _parse_date(before, "--before")

    async def _run() -> int:
        async with runtime.create_tracker(ctx) as tracker:
            return await tracker.queries.trigger_cleanup(cutoff)

    deleted = run_command(_run)
    render_rows(ctx, [{"deleted": deleted, "cutoff": cutoff.isoformat() if cutoff else "policy"}])


def schedule_command(ctx: typer.Context) -> None:
    """Run the daily ingest and the monthly sweep until interrupted."""

    async def _run() -> None:
        async with runtime.create_tracker(ctx) as tracker:
            logger.info("Scheduler started")
            await tracker.scheduler.run_forever()

    try:
        run_command(_run)
    except KeyboardInterrupt:
        logger.info("Scheduler interrupted; shutting down")


def serve_command(
    ctx: typer.Context,
    host: str = typer.Option("127.0.0.1", "--host", envvar="FEARGREED_HOST", help="Bind address."),
    port: int = typer.Option(8000, "--port", envvar="FEARGREED_PORT", help="Bind port."),
) -> None:
    """Serve the REST API (and the scheduler, when enabled) with uvicorn."""

    try:
        config = runtime.load_config(ctx)
    except ConfigError as error:
        emit_error(error.message, error.error_code, details=error.details)
        raise typer.Exit(code=VALIDATION_EXIT_CODE) from error
    uvicorn.run(create_app(config), host=host, port=port, log_level="info")


__all__ = ["register"]
