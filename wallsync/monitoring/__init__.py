"""
Monitoring Module

Filesystem notifications and debouncing.

Author: WallSync Project
License: MIT
"""

from .debouncer import Debouncer
from .events import ChangeEvent, EventStream, WatchSource

__all__ = ['Debouncer', 'ChangeEvent', 'EventStream', 'WatchSource']
