"""
WallSync Core Module

Artifact naming, the handled-set, the local and remote watcher cycles and
the orchestrator that runs them.

Author: WallSync Project
License: MIT
"""

from .handled_store import HandledSetStore
from .local_watcher import LocalChangeWatcher
from .remote_watcher import RemoteChangeWatcher
from .results import CycleResult, CycleStatus

__all__ = [
    'HandledSetStore', 'LocalChangeWatcher', 'RemoteChangeWatcher',
    'CycleResult', 'CycleStatus',
]
