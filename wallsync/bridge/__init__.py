"""
Apply-Wallpaper Bridge Module

Interface to the desktop commands that set the background.

Author: WallSync Project
License: MIT
"""

from .executor import (
    ApplyWallpaperBridge,
    CommandResult,
    CommandRunner,
    CommandWallpaperBridge,
    GnomeWallpaperBridge,
    create_bridge,
)

__all__ = [
    'ApplyWallpaperBridge', 'CommandResult', 'CommandRunner',
    'CommandWallpaperBridge', 'GnomeWallpaperBridge', 'create_bridge',
]
