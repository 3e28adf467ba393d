from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Union

import yaml
from pydantic import ValidationError

from .settings import LoggerConfig, merge_config


class ConfigLoaderError(RuntimeError):
    """Raised when a configuration file cannot be read or parsed."""


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except OSError as exc:
        raise ConfigLoaderError(f"Unable to read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigLoaderError(f"Invalid YAML in {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigLoaderError(f"Config root in {path} must be a mapping")
    # Allow the settings to live under a top-level "security_logger" key.
    if set(data) == {"security_logger"} and isinstance(data["security_logger"], dict):
        return data["security_logger"]
    return data


def load_config(path: Union[str, Path], *, use_env_defaults: bool = True) -> LoggerConfig:
    """Load a LoggerConfig from a YAML file.

    Keys present in the file win; anything missing falls back to
    ``LoggerConfig.from_env()`` (or plain defaults when ``use_env_defaults``
    is false).
    """
    path = Path(path)
    overrides = _read_yaml(path)
    base = LoggerConfig.from_env() if use_env_defaults else LoggerConfig()
    try:
        return merge_config(overrides, base=base)
    except ValidationError as exc:
        raise ConfigLoaderError(f"Invalid configuration in {path}: {exc}") from exc
