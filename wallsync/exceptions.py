"""
Exceptions

Error types shared across WallSync modules.

Author: WallSync Project
License: MIT
"""


class WallSyncError(Exception):
    """Base class for all WallSync errors."""


class ConfigError(WallSyncError):
    """Configuration file could not be read or failed validation."""


class StartupError(WallSyncError):
    """Required directories or state could not be prepared; the daemon cannot run."""


class CorruptStateError(WallSyncError):
    """Persisted handled-set exists but does not match the expected schema."""


class PublishError(WallSyncError):
    """Copying a wallpaper into the shared folder failed after all retries."""
