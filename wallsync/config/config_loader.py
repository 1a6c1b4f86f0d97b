"""
Configuration Loader

Reads config.yaml, applies WALLSYNC_* environment overrides (a .env file in
the working directory is honoured) and validates the result.

Author: WallSync Project
License: MIT
"""

import os
import yaml
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple
from dotenv import load_dotenv
from pydantic import ValidationError

from .schema import Config
from ..exceptions import ConfigError

DEFAULT_CONFIG_PATH = "~/.config/wallsync/config.yaml"


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(value: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise ConfigError(f"Expected an integer, got {value!r}") from e


# variable -> (section, keys, converter)
ENV_OVERRIDES: Dict[str, Tuple[str, Tuple[str, ...], Callable[[str], Any]]] = {
    "WALLSYNC_LOG_LEVEL": ("app", ("log_level",), str),
    "WALLSYNC_LOG_TO_FILE": ("app", ("log_to_file",), _env_flag),
    "WALLSYNC_JSON_LOGS": ("app", ("json_format",), _env_flag),
    "WALLSYNC_BACKGROUND_PATH": ("sync", ("background_path",), str),
    "WALLSYNC_SHARED_FOLDER": ("sync", ("shared_folder",), str),
    "WALLSYNC_STATE_PATH": ("sync", ("state_path",), str),
    "WALLSYNC_DEBOUNCE_MS": ("sync", ("local_debounce_ms", "remote_debounce_ms"), _env_int),
    "WALLSYNC_APPLY_BACKEND": ("apply", ("backend",), str),
}


class ConfigLoader:
    """Loads, overrides, validates and saves the WallSync configuration."""

    def __init__(self, config_path: Optional[str] = None):
        """
        Args:
            config_path: YAML file to read. Defaults to $WALLSYNC_CONFIG, then
                ~/.config/wallsync/config.yaml.
        """
        load_dotenv()

        self.config_path = os.path.expanduser(
            config_path or os.getenv("WALLSYNC_CONFIG", DEFAULT_CONFIG_PATH)
        )
        self._config: Optional[Config] = None

    def load(self) -> Config:
        """
        Build the effective configuration.

        Returns:
            Validated Config

        Raises:
            ConfigError: Unreadable file, bad YAML, bad override or a value
                rejected by the schema
        """
        data = self._apply_env_overrides(self._read_file())

        try:
            self._config = Config(**data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration in {self.config_path}: {e}") from e

        return self._config

    def _read_file(self) -> Dict[str, Any]:
        """Parsed YAML mapping; an absent file means all defaults."""
        path = Path(self.config_path)
        if not path.is_file():
            return {}

        try:
            with open(path, encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Cannot parse {path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Cannot read {path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Top level of {path} must be a mapping")
        return data

    def _apply_env_overrides(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Set values from WALLSYNC_* variables; they take precedence over the file."""
        for variable, (section, keys, convert) in ENV_OVERRIDES.items():
            raw = os.getenv(variable)
            if not raw:
                continue
            try:
                value = convert(raw)
            except ConfigError as e:
                raise ConfigError(f"{variable}: {e}") from e
            target = data.setdefault(section, {})
            for key in keys:
                target[key] = value
        return data

    def save(self, config: Config, path: Optional[str] = None) -> None:
        """
        Write a configuration as YAML, creating the directory if needed.

        Args:
            config: Configuration to write
            path: Destination (the loader's own path if None)
        """
        destination = Path(os.path.expanduser(path or self.config_path))
        destination.parent.mkdir(parents=True, exist_ok=True)

        with open(destination, 'w', encoding='utf-8') as f:
            yaml.safe_dump(config.model_dump(mode="json"), f, default_flow_style=False, sort_keys=False)

    @property
    def config(self) -> Optional[Config]:
        """Configuration from the last successful load()."""
        return self._config


def load_config(config_path: Optional[str] = None) -> Config:
    """Shortcut for ``ConfigLoader(config_path).load()``."""
    return ConfigLoader(config_path).load()
