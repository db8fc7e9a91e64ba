"""Factory hooks shared by the command modules; tests replace them."""

from __future__ import annotations

import typer

from feargreed.core.config import ConfigManager, FearGreedConfig
from feargreed.core.logging import configure_logging
from feargreed.core.tracker import FearGreedTracker

from .utils import get_cli_options


def load_config(ctx: typer.Context) -> FearGreedConfig:
    """Load configuration from ``--config`` (or the default path) plus environment."""

    config = ConfigManager(get_cli_options(ctx).config_path).get_config()
    if config.logging.file:
        level = (ctx.obj or {}).get("log_level") or config.logging.level
        configure_logging(level, file_output=True, file_path=config.logging.file)
    return config


def create_tracker(ctx: typer.Context) -> FearGreedTracker:
    """Factory hook for obtaining a :class:`FearGreedTracker` instance."""

    return FearGreedTracker(load_config(ctx))
