"""Config Loader - Loads requestkit settings files.

Settings are YAML documents with ${ENV_VAR} substitution:

    transport:
      headers:
        Authorization: "Bearer ${API_TOKEN}"
      follow_redirects: true
    logging:
      level: DEBUG
      json_logs: false
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from requestkit.errors import RequestKitError
from requestkit.models import LoggingConfig, Settings, TransportConfig
from requestkit.observability import setup_logging

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


class ConfigError(RequestKitError):
    """Raised when configuration loading fails."""


def load_settings(config_path: Path | str) -> Settings:
    """Load settings from YAML with ${ENV_VAR} substitution."""
    config_path = Path(config_path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file: {e}") from e

    # An empty file means all defaults
    if raw_config is None:
        raw_config = {}
    if not isinstance(raw_config, dict):
        raise ConfigError("Config file must be a YAML mapping")

    raw_config = _substitute_env_vars(raw_config)

    try:
        return Settings.model_validate(raw_config)
    except ValidationError as e:
        raise ConfigError(f"Invalid config structure: {e}") from e


def load_transport_config(config_path: Path | str) -> TransportConfig:
    """Load only the transport section of a settings file."""
    return load_settings(config_path).transport


def apply_logging_config(config: LoggingConfig) -> None:
    """Configure logging from the logging section of a settings file."""
    setup_logging(
        level=config.level,
        json_logs=config.json_logs,
        include_timestamp=config.include_timestamp,
    )


def _substitute_env_vars(data: Any) -> Any:
    """Recursively substitute ${ENV_VAR} patterns in strings within data."""
    if isinstance(data, str):
        return _substitute_string(data)
    elif isinstance(data, dict):
        return {k: _substitute_env_vars(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_substitute_env_vars(item) for item in data]
    return data


def _substitute_string(s: str) -> str:
    """Substitute ${ENV_VAR} patterns. Raises ConfigError if env var is not set."""

    def replacer(match: re.Match) -> str:
        var_name = match.group(1)
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(f"Environment variable '{var_name}' is not set")
        return value

    return _ENV_VAR_PATTERN.sub(replacer, s)
