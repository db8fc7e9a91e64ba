"""Main entry point for the feargreed command line interface."""

from __future__ import annotations

from pathlib import Path

import typer

from feargreed.core.logging import LOG_LEVELS, configure_logging

from .formatters import create_formatter
from .index import register as register_index_commands
from .jobs import register as register_job_commands


def create_app() -> typer.Typer:
    """Create a Typer application instance for the tracker."""

    app = typer.Typer(add_completion=False, help="Fear & Greed index tracker")

    @app.callback()
    def main(
        ctx: typer.Context,
        format: str = typer.Option(
            "table",
            "--format",
            "-f",
            help="Output format (table or jsonl).",
            show_default=True,
        ),
        output: Path | None = typer.Option(
            None,
            "--output",
            "-o",
            help="Write output to a file instead of stdout.",
        ),
        log_level: str = typer.Option(
            "WARNING",
            "--log-level",
            help="Logging level for the JSON log stream on stderr.",
            show_default=True,
        ),
        no_color: bool = typer.Option(
            False,
            "--no-color",
            help="Disable colorized output for table format.",
        ),
        config: Path | None = typer.Option(
            None,
            "--config",
            "-c",
            help="Path to a TOML config file (default ~/.feargreed/config.toml).",
        ),
    ) -> None:
        ctx.ensure_object(dict)
        normalized_format = format.strip().lower()
        try:
            create_formatter(normalized_format, no_color=no_color)
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--format") from exc

        ctx.obj.update(
            {
                "format": normalized_format,
                "output_path": output,
                "log_level": log_level.upper(),
                "no_color": no_color,
                "config_path": config,
            }
        )
        _configure_logging(log_level)

    register_index_commands(app)
    register_job_commands(app)
    return app


def _configure_logging(level_name: str) -> None:
    level = level_name.upper()
    if level not in LOG_LEVELS:
        level = "INFO"
    configure_logging(level)


app = create_app()
