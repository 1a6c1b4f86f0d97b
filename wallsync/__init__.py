"""
WallSync

Keeps the desktop wallpaper of several machines in step through a shared,
externally synchronized folder.

Author: WallSync Project
License: MIT
"""

__version__ = "0.1.0"
