"""Configuration management module."""

from feargreed.core.config.settings import (
    ConfigManager,
    FearGreedConfig,
    LoggingConfig,
    RetentionConfig,
    ScheduleConfig,
    SourceConfig,
    StorageConfig,
    get_default_config,
    load_config_from_env,
)

__all__ = [
    "ConfigManager",
    "FearGreedConfig",
    "LoggingConfig",
    "RetentionConfig",
    "ScheduleConfig",
    "SourceConfig",
    "StorageConfig",
    "get_default_config",
    "load_config_from_env",
]
