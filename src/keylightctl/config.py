"""
Configuration for keylightctl
Reads optional defaults from a JSON file following XDG standards and layers
command-line flags on top
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from keylightctl.core.service import DEFAULT_HTTP_TIMEOUT
from keylightctl.exceptions import ConfigError

_LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
DEFAULT_LOG_LEVEL = "info"

# logrus-style level names accepted on the command line
LOG_LEVELS: Dict[str, int] = {
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "panic": logging.CRITICAL,
}


@dataclass
class CommandConfig:
    """Everything one invocation needs, built once and passed explicitly."""
    lights: List[str] = field(default_factory=list)
    log_level: str = DEFAULT_LOG_LEVEL
    timeout: float = DEFAULT_TIMEOUT
    http_timeout: float = DEFAULT_HTTP_TIMEOUT

    @property
    def logging_level(self) -> int:
        return LOG_LEVELS[self.log_level]

    @classmethod
    def build(cls, file_values: Dict[str, Any], **overrides: Any) -> "CommandConfig":
        """Merge defaults, file values and flags (later wins, None is unset)."""
        config = cls()
        for key, value in file_values.items():
            setattr(config, key, value)
        for key, value in overrides.items():
            if value is not None:
                setattr(config, key, value)
        config.validate()
        return config

    def validate(self) -> None:
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(
                f"unknown log level {self.log_level!r} "
                f"(expected one of {', '.join(LOG_LEVELS)})"
            )
        if self.timeout < 0:
            raise ConfigError(f"timeout must not be negative (got {self.timeout})")
        if self.http_timeout <= 0:
            raise ConfigError(f"http_timeout must be positive (got {self.http_timeout})")


def default_config_path() -> Path:
    """Get configuration file path following XDG standards"""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        config_dir = Path(config_home) / "keylightctl"
    else:
        config_dir = Path.home() / ".config" / "keylightctl"
    return config_dir / "config.json"


def load_config_file(path: Optional[Path] = None) -> Dict[str, Any]:
    """Read settings from ``path`` or the default location.

    A missing or broken default file only produces a warning; a file that was
    asked for explicitly must exist and be valid.
    """
    explicit = path is not None
    config_path = path if explicit else default_config_path()

    try:
        if not config_path.exists():
            if explicit:
                raise ConfigError(f"config file {config_path} does not exist")
            return {}
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return _parse_config(data, config_path)
    except (json.JSONDecodeError, OSError, ConfigError) as e:
        if explicit:
            if isinstance(e, ConfigError):
                raise
            raise ConfigError(f"error loading config from {config_path}: {e}") from e
        _LOGGER.warning("Error loading config from %s: %s, using defaults", config_path, e)
        return {}


def _parse_config(data: Any, config_path: Path) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise ConfigError(f"invalid config structure in {config_path}")

    values: Dict[str, Any] = {}
    for key in ("timeout", "http_timeout"):
        if key in data:
            value = data[key]
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigError(f"{key} in {config_path} must be a number")
            values[key] = float(value)
    if "log_level" in data:
        if not isinstance(data["log_level"], str):
            raise ConfigError(f"log_level in {config_path} must be a string")
        values["log_level"] = data["log_level"].lower()

    unknown = set(data) - {"timeout", "http_timeout", "log_level"}
    if unknown:
        _LOGGER.warning("Ignoring unknown keys in %s: %s", config_path, ", ".join(sorted(unknown)))
    return values
