"""
WallSync Configuration Module

Loads and validates the YAML configuration, with environment variable
overrides.

Author: WallSync Project
License: MIT
"""

from .schema import Config, AppConfig, SyncConfig, ApplyConfig, ApplyBackend, LogLevel
from .config_loader import ConfigLoader, load_config

__all__ = [
    'Config', 'AppConfig', 'SyncConfig', 'ApplyConfig', 'ApplyBackend', 'LogLevel',
    'ConfigLoader', 'load_config',
]
