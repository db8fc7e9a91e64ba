"""配置管理模块 - 处理feargreed服务的配置"""

from __future__ import annotations

import os
import tomllib
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from feargreed.core.exceptions import ConfigError
from feargreed.core.logging import LOG_LEVELS

DEFAULT_CONFIG_PATH = Path.home() / ".feargreed" / "config.toml"

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@dataclass
class SourceConfig:
    """指数数据源配置"""

    base_url: str = "https://production.dataviz.cnn.io/index/fearandgreed"
    timeout: float = 10.0
    max_attempts: int = 3
    backoff_factor: float = 1.0
    user_agent: str = BROWSER_USER_AGENT
    accept_language: str = "en-US,en;q=0.9"
    referer: str = "https://edition.cnn.com/markets/fear-and-greed"

    def __post_init__(self) -> None:
        if not self.base_url:
            raise ConfigError("source.base_url cannot be empty")
        if self.timeout <= 0:
            raise ConfigError("source.timeout must be positive")
        if self.max_attempts < 1:
            raise ConfigError("source.max_attempts must be at least 1")


@dataclass
class StorageConfig:
    """存储配置"""

    db_path: str = str(Path.home() / ".feargreed" / "feargreed.duckdb")


@dataclass
class ScheduleConfig:
    """调度配置 (UTC)"""

    enabled: bool = True
    daily_hour: int = 1
    daily_minute: int = 0
    sweep_day: int = 1
    sweep_hour: int = 2
    sweep_minute: int = 0
    run_on_startup: bool = False

    def __post_init__(self) -> None:
        for name in ("daily_hour", "sweep_hour"):
            if not 0 <= getattr(self, name) <= 23:
                raise ConfigError(f"schedule.{name} must be within 0-23")
        for name in ("daily_minute", "sweep_minute"):
            if not 0 <= getattr(self, name) <= 59:
                raise ConfigError(f"schedule.{name} must be within 0-59")
        if not 1 <= self.sweep_day <= 28:
            raise ConfigError("schedule.sweep_day must be within 1-28")


@dataclass
class RetentionConfig:
    """数据保留配置"""

    years: int = 5

    def __post_init__(self) -> None:
        if self.years < 1:
            raise ConfigError("retention.years must be at least 1")


@dataclass
class LoggingConfig:
    """日志配置"""

    level: str = "INFO"
    file: str | None = None

    def __post_init__(self) -> None:
        self.level = str(self.level).strip().upper()
        if self.level not in LOG_LEVELS:
            raise ConfigError(f"logging.level must be one of {', '.join(LOG_LEVELS)}")


@dataclass
class FearGreedConfig:
    """feargreed主配置"""

    source: SourceConfig = field(default_factory=SourceConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    retention: RetentionConfig = field(default_factory=RetentionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> FearGreedConfig:
        """从字典创建配置"""
        try:
            return cls(
                source=SourceConfig(**config_dict.get("source", {})),
                storage=StorageConfig(**config_dict.get("storage", {})),
                schedule=ScheduleConfig(**config_dict.get("schedule", {})),
                retention=RetentionConfig(**config_dict.get("retention", {})),
                logging=LoggingConfig(**config_dict.get("logging", {})),
            )
        except TypeError as exc:
            raise ConfigError(f"Unknown configuration key: {exc}") from exc

    def to_dict(self) -> dict[str, Any]:
        """转换为字典"""
        return {
            "source": asdict(self.source),
            "storage": asdict(self.storage),
            "schedule": asdict(self.schedule),
            "retention": asdict(self.retention),
            "logging": asdict(self.logging),
        }


class ConfigManager:
    """配置管理器"""

    def __init__(self, config_path: Path | None = None, *, use_env: bool = True):
        """初始化配置管理器

        Args:
            config_path: 配置文件路径，如果为None则使用默认路径
            use_env: 是否叠加 FEARGREED_* 环境变量
        """
        self.config_path = config_path or DEFAULT_CONFIG_PATH
        self.use_env = use_env
        self.config = self._load_config()

    def _load_config(self) -> FearGreedConfig:
        """加载配置"""
        config_dict: dict[str, Any] = {}
        if self.config_path.exists():
            try:
                with open(self.config_path, "rb") as f:
                    config_dict = tomllib.load(f)
            except (OSError, tomllib.TOMLDecodeError) as e:
                raise ConfigError(
                    f"Failed to load config from {self.config_path}: {e}",
                    details={"path": str(self.config_path)},
                ) from e

        if self.use_env:
            _deep_update(config_dict, load_config_from_env())
        return FearGreedConfig.from_dict(config_dict)

    def get_config(self) -> FearGreedConfig:
        """获取当前配置"""
        return self.config

    def update_config(self, **updates: Any) -> None:
        """更新配置"""
        config_dict = self.config.to_dict()
        _deep_update(config_dict, updates)
        self.config = FearGreedConfig.from_dict(config_dict)


def _deep_update(d: dict[str, Any], u: dict[str, Any]) -> dict[str, Any]:
    """深度更新字典"""
    for k, v in u.items():
        if isinstance(v, dict):
            d[k] = _deep_update(d.get(k, {}), v)
        else:
            d[k] = v
    return d


def get_default_config() -> FearGreedConfig:
    """获取默认配置"""
    return FearGreedConfig()


_ENV_FIELDS: dict[str, tuple[str, str, type]] = {
    "FEARGREED_SOURCE_BASE_URL": ("source", "base_url", str),
    "FEARGREED_SOURCE_TIMEOUT": ("source", "timeout", float),
    "FEARGREED_SOURCE_MAX_ATTEMPTS": ("source", "max_attempts", int),
    "FEARGREED_DB_PATH": ("storage", "db_path", str),
    "FEARGREED_SCHEDULE_ENABLED": ("schedule", "enabled", bool),
    "FEARGREED_SCHEDULE_DAILY_HOUR": ("schedule", "daily_hour", int),
    "FEARGREED_SCHEDULE_SWEEP_HOUR": ("schedule", "sweep_hour", int),
    "FEARGREED_SCHEDULE_RUN_ON_STARTUP": ("schedule", "run_on_startup", bool),
    "FEARGREED_RETENTION_YEARS": ("retention", "years", int),
    "FEARGREED_LOGGING_LEVEL": ("logging", "level", str),
    "FEARGREED_LOGGING_FILE": ("logging", "file", str),
}


def load_config_from_env() -> dict[str, Any]:
    """从环境变量加载配置"""
    config: dict[str, Any] = {}
    for env_name, (section, key, kind) in _ENV_FIELDS.items():
        raw = os.getenv(env_name)
        if raw is None:
            continue
        try:
            value: Any = raw.lower() == "true" if kind is bool else kind(raw)
        except ValueError as exc:
            raise ConfigError(f"Invalid value for {env_name}: {raw!r}") from exc
        config.setdefault(section, {})[key] = value
    return config
