"""
Configuration Schema and Models

Pydantic models for the configuration file, providing validation,
default values, and type checking for all configuration options.

Author: WallSync Project
License: MIT
"""

import os
from enum import Enum
from typing import List
from pathlib import Path
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class LogLevel(str, Enum):
    """Logging level options."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ApplyBackend(str, Enum):
    """How a wallpaper is applied to the desktop."""
    GNOME = "gnome"
    COMMAND = "command"


def _expand_absolute(value: str, label: str) -> str:
    """Expand ``~`` and environment variables, then require an absolute path."""
    expanded = os.path.expandvars(os.path.expanduser(str(value)))
    if not Path(expanded).is_absolute():
        raise ValueError(f"{label} must be absolute: {value}")
    return expanded


class AppConfig(BaseModel):
    """Process-level settings (logging)."""

    model_config = ConfigDict(validate_default=True)

    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Application logging level"
    )
    log_to_file: bool = Field(
        default=True,
        description="Enable logging to file"
    )
    log_file_path: str = Field(
        default="~/.local/state/wallsync/wallsync.log",
        description="Path to the rotating log file"
    )
    log_rotation_size: int = Field(
        default=10485760,  # 10MB
        description="Log file size before rotation (bytes)"
    )
    log_retention_count: int = Field(
        default=5,
        description="Number of rotated log files to keep"
    )
    json_format: bool = Field(
        default=False,
        description="Emit logs as JSON lines"
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        """Accept lowercase level names."""
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("log_file_path")
    @classmethod
    def validate_log_path(cls, v):
        return _expand_absolute(v, "log_file_path")


class SyncConfig(BaseModel):
    """Paths and timings for the two watchers."""

    model_config = ConfigDict(validate_default=True)

    background_path: str = Field(
        default="~/.config/background",
        description="Local background file rewritten by the desktop when the wallpaper changes"
    )
    shared_folder: str = Field(
        default="~/Sync/wallsync",
        description="Externally synchronized folder used as the transport between machines"
    )
    state_path: str = Field(
        default="~/.local/state/wallsync/handled-wallpapers.json",
        description="Where the handled-set of this machine is persisted"
    )
    local_debounce_ms: int = Field(
        default=1000,
        description="Quiet period before a burst of background-file events is acted on"
    )
    remote_debounce_ms: int = Field(
        default=1000,
        description="Quiet period before a burst of shared-folder events is acted on"
    )
    copy_retry_attempts: int = Field(
        default=3,
        description="Attempts when copying a wallpaper into the shared folder"
    )
    copy_retry_delay: float = Field(
        default=0.5,
        description="Base backoff in seconds; attempt N waits N times this"
    )
    quarantine_corrupt_state: bool = Field(
        default=True,
        description="Move an unreadable handled-set aside instead of overwriting it"
    )

    @field_validator("background_path", "shared_folder", "state_path")
    @classmethod
    def validate_paths(cls, v, info):
        """Ensure paths are absolute after expansion."""
        return _expand_absolute(v, info.field_name)

    @field_validator("local_debounce_ms", "remote_debounce_ms")
    @classmethod
    def validate_debounce(cls, v):
        if v <= 0:
            raise ValueError(f"Debounce delay must be positive: {v}")
        return v

    @field_validator("copy_retry_attempts")
    @classmethod
    def validate_attempts(cls, v):
        if v < 1:
            raise ValueError(f"copy_retry_attempts must be at least 1: {v}")
        return v

    @field_validator("copy_retry_delay")
    @classmethod
    def validate_delay(cls, v):
        if v < 0:
            raise ValueError(f"copy_retry_delay cannot be negative: {v}")
        return v


class ApplyConfig(BaseModel):
    """External command used to set the desktop background."""

    backend: ApplyBackend = Field(
        default=ApplyBackend.GNOME,
        description="gnome (gsettings, light and dark variants) or command"
    )
    commands: List[List[str]] = Field(
        default=[],
        description="argv templates run in order for backend=command; {path} and {uri} are substituted"
    )
    timeout: int = Field(
        default=30,
        description="Timeout per command in seconds"
    )
    retry_attempts: int = Field(
        default=3,
        description="Attempts per command before the apply is reported as failed"
    )
    retry_delay: float = Field(
        default=1.0,
        description="Base backoff in seconds between command attempts"
    )

    @field_validator("backend", mode="before")
    @classmethod
    def normalize_backend(cls, v):
        if isinstance(v, str):
            return v.lower()
        return v

    @field_validator("commands")
    @classmethod
    def validate_commands(cls, v):
        """Reject empty argv entries."""
        for argv in v:
            if not argv:
                raise ValueError("Apply commands cannot contain an empty argv")
        return v

    @field_validator("retry_attempts")
    @classmethod
    def validate_attempts(cls, v):
        if v < 1:
            raise ValueError(f"retry_attempts must be at least 1: {v}")
        return v

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v):
        if v <= 0:
            raise ValueError(f"timeout must be positive: {v}")
        return v

    @field_validator("retry_delay")
    @classmethod
    def validate_retry_delay(cls, v):
        if v < 0:
            raise ValueError(f"retry_delay cannot be negative: {v}")
        return v


class Config(BaseModel):
    """
    Root configuration model for WallSync.

    Loaded from config.yaml and overridable by environment variables.
    """

    model_config = ConfigDict(validate_assignment=True)

    app: AppConfig = Field(default_factory=AppConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    apply: ApplyConfig = Field(default_factory=ApplyConfig)

    @model_validator(mode="after")
    def validate_cross_fields(self):
        """Check settings that span more than one section."""
        if self.apply.backend == ApplyBackend.COMMAND and not self.apply.commands:
            raise ValueError("apply.backend=command requires at least one entry in apply.commands")

        shared = Path(self.sync.shared_folder)
        for label, value in (
            ("background_path", self.sync.background_path),
            ("state_path", self.sync.state_path),
        ):
            if Path(value).parent == shared:
                raise ValueError(f"sync.{label} cannot live inside the shared folder: {value}")

        return self
