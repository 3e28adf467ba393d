"""Configuration management for the security logger."""

from .loader import ConfigLoaderError, load_config
from .settings import (
    ConfigInput,
    LoggerConfig,
    RapidSuccessionSettings,
    SuspiciousActivityThresholds,
    merge_config,
)

__all__ = [
    "ConfigInput",
    "ConfigLoaderError",
    "LoggerConfig",
    "RapidSuccessionSettings",
    "SuspiciousActivityThresholds",
    "load_config",
    "merge_config",
]
