from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from authwatch.events.models import Severity
from authwatch.logging.internal import report_internal_warning
from authwatch.utils.env import get_env_bool, get_env_float, get_env_int, get_env_str

load_dotenv()

DEFAULT_LOG_DIRECTORY = Path("./logs/security")
DEFAULT_MAX_LOG_FILE_SIZE = 10 * 1024 * 1024
DEFAULT_DATABASE_URL = "sqlite:///./authwatch.db"


def _env_severity(name: str, default: Severity) -> Severity:
    value = get_env_str(name)
    if value is None:
        return default
    try:
        return Severity(value.lower())
    except ValueError:
        report_internal_warning(f"Ignoring invalid {name}={value!r}; using {default.value!r}")
        return default


class SuspiciousActivityThresholds(BaseModel):
    model_config = ConfigDict(extra="forbid")

    max_failed_attempts_per_ip: int = Field(10, ge=1)
    max_failed_attempts_per_user: int = Field(5, ge=1)
    max_token_invalidations_per_ip: int = Field(20, ge=1)
    time_window_ms: int = Field(15 * 60 * 1000, gt=0)

    @property
    def time_window_seconds(self) -> float:
        return self.time_window_ms / 1000.0


class RapidSuccessionSettings(BaseModel):
    """How many failures from one IP, inside how short a span, count as rapid."""

    model_config = ConfigDict(extra="forbid")

    min_attempts: int = Field(3, ge=2)
    window_ms: int = Field(10_000, gt=0)


class LoggerConfig(BaseModel):
    """Runtime configuration for the security logger."""

    model_config = ConfigDict(extra="forbid")

    log_level: Severity = Severity.LOW
    log_to_console: bool = True
    log_to_file: bool = False
    log_directory: Path = DEFAULT_LOG_DIRECTORY
    max_log_file_size: int = Field(DEFAULT_MAX_LOG_FILE_SIZE, gt=0)
    max_log_files: int = Field(10, ge=1)
    suspicious_activity_thresholds: SuspiciousActivityThresholds = Field(
        default_factory=SuspiciousActivityThresholds
    )
    rapid_succession: RapidSuccessionSettings = Field(default_factory=RapidSuccessionSettings)
    cleanup_interval_seconds: float = Field(300.0, ge=0)
    writer_queue_size: int = Field(1000, ge=1)
    log_to_database: bool = False
    database_url: Optional[str] = None
    environment: str = "development"

    def resolved_database_url(self) -> str:
        return (
            self.database_url
            or get_env_str("AUTHWATCH_DATABASE_URL")
            or get_env_str("DATABASE_URL")
            or DEFAULT_DATABASE_URL
        )

    @classmethod
    def from_env(cls) -> "LoggerConfig":
        """Build a configuration from ``AUTHWATCH_*`` environment variables."""
        defaults = cls()
        thresholds = defaults.suspicious_activity_thresholds
        rapid = defaults.rapid_succession
        return cls(
            log_level=_env_severity("AUTHWATCH_LOG_LEVEL", defaults.log_level),
            log_to_console=get_env_bool("AUTHWATCH_LOG_TO_CONSOLE", defaults.log_to_console),
            log_to_file=get_env_bool("AUTHWATCH_LOG_TO_FILE", defaults.log_to_file),
            log_directory=Path(get_env_str("AUTHWATCH_LOG_DIR", str(defaults.log_directory))),
            max_log_file_size=get_env_int("AUTHWATCH_MAX_LOG_FILE_SIZE", defaults.max_log_file_size),
            max_log_files=get_env_int("AUTHWATCH_MAX_LOG_FILES", defaults.max_log_files),
            suspicious_activity_thresholds=SuspiciousActivityThresholds(
                max_failed_attempts_per_ip=get_env_int(
                    "AUTHWATCH_MAX_FAILED_PER_IP", thresholds.max_failed_attempts_per_ip
                ),
                max_failed_attempts_per_user=get_env_int(
                    "AUTHWATCH_MAX_FAILED_PER_USER", thresholds.max_failed_attempts_per_user
                ),
                max_token_invalidations_per_ip=get_env_int(
                    "AUTHWATCH_MAX_TOKEN_INVALID_PER_IP", thresholds.max_token_invalidations_per_ip
                ),
                time_window_ms=get_env_int("AUTHWATCH_TIME_WINDOW_MS", thresholds.time_window_ms),
            ),
            rapid_succession=RapidSuccessionSettings(
                min_attempts=get_env_int("AUTHWATCH_RAPID_MIN_ATTEMPTS", rapid.min_attempts),
                window_ms=get_env_int("AUTHWATCH_RAPID_WINDOW_MS", rapid.window_ms),
            ),
            cleanup_interval_seconds=get_env_float(
                "AUTHWATCH_CLEANUP_INTERVAL_SECONDS", defaults.cleanup_interval_seconds
            ),
            writer_queue_size=get_env_int("AUTHWATCH_WRITER_QUEUE_SIZE", defaults.writer_queue_size),
            log_to_database=get_env_bool("AUTHWATCH_LOG_TO_DATABASE", defaults.log_to_database),
            database_url=get_env_str("AUTHWATCH_DATABASE_URL"),
            environment=get_env_str("AUTHWATCH_ENV", defaults.environment),
        )


ConfigInput = Union[LoggerConfig, Mapping[str, Any], None]


def merge_config(overrides: ConfigInput = None, base: Optional[LoggerConfig] = None) -> LoggerConfig:
    """Merge ``overrides`` over ``base`` (or the defaults).

    Nested sections may be given partially; missing keys keep the base value.
    """
    if isinstance(overrides, LoggerConfig):
        return overrides

    base = base or LoggerConfig()
    merged: Dict[str, Any] = base.model_dump()
    for key, value in dict(overrides or {}).items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            merged[key] = {**current, **dict(value)}
        elif isinstance(value, BaseModel):
            merged[key] = value.model_dump()
        else:
            merged[key] = value
    return LoggerConfig.model_validate(merged)
