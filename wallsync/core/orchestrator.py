"""
Orchestrator

Wires the watchers together: prepares directories and state, catches up
with the shared folder once at startup, then dispatches filesystem events
to the debounced local and remote cycles until stopped.

Author: WallSync Project
License: MIT
"""

from pathlib import Path
from threading import Lock, Thread
from typing import Dict, Optional

from .handled_store import HandledSetStore
from .local_watcher import LocalChangeWatcher
from .remote_watcher import RemoteChangeWatcher
from .results import CycleResult, CycleStatus
from ..bridge.executor import ApplyWallpaperBridge, create_bridge
from ..config.schema import Config
from ..exceptions import StartupError
from ..monitoring.debouncer import Debouncer
from ..monitoring.events import WatchSource
from ..monitoring.watcher import ChangeWatcher
from ..utils.file_ops import ensure_directory
from ..utils.logger import get_logger

logger = get_logger(__name__)


def _empty_stats() -> Dict[str, int]:
    return {status.value: 0 for status in CycleStatus}


class Orchestrator:
    """
    Main orchestrator for WallSync.

    Lifecycle: ``initialize()`` → ``reconcile_on_startup()`` → ``start()``
    → ``stop()``. Blocking until a signal arrives is left to the caller.
    """

    def __init__(
        self,
        config: Config,
        bridge: Optional[ApplyWallpaperBridge] = None,
        store: Optional[HandledSetStore] = None
    ):
        """
        Initialize orchestrator.

        Args:
            config: Application configuration
            bridge: Apply bridge (built from configuration if None)
            store: Handled-set store (built from configuration if None)
        """
        self.config = config
        sync = config.sync

        self.store = store or HandledSetStore(
            sync.state_path,
            quarantine_corrupt=sync.quarantine_corrupt_state
        )
        self.bridge = bridge or create_bridge(config.apply)

        self.local_watcher = LocalChangeWatcher(
            background_path=sync.background_path,
            shared_folder=sync.shared_folder,
            store=self.store,
            copy_retry_attempts=sync.copy_retry_attempts,
            copy_retry_delay=sync.copy_retry_delay
        )
        self.remote_watcher = RemoteChangeWatcher(
            shared_folder=sync.shared_folder,
            store=self.store,
            bridge=self.bridge
        )

        self.change_watcher: Optional[ChangeWatcher] = None
        self.debouncer: Optional[Debouncer] = None
        self._dispatch_thread: Optional[Thread] = None

        self._running = False
        self._initialized = False
        self._stats = {source.value: _empty_stats() for source in WatchSource}
        self._stats_lock = Lock()

        logger.info("Orchestrator initialized")

    def initialize(self):
        """
        Create required directories and load the handled-set.

        Raises:
            StartupError: If a directory cannot be created or the state file
                cannot be read
        """
        sync = self.config.sync
        required = [
            Path(sync.shared_folder),
            Path(sync.state_path).parent,
            Path(sync.background_path).parent,
        ]
        for directory in required:
            if not ensure_directory(directory):
                raise StartupError(f"Cannot create required directory: {directory}")

        try:
            self.store.load()
        except OSError as e:
            raise StartupError(f"Cannot read handled-set {sync.state_path}: {e}") from e

        self._initialized = True
        logger.info(
            f"Ready: background={sync.background_path} shared={sync.shared_folder} "
            f"handled={len(self.store)}"
        )

    def reconcile_on_startup(self) -> Optional[CycleResult]:
        """
        Run one remote cycle synchronously, before any watcher is armed.

        Picks up wallpapers other machines published while this one was
        offline. Failures are logged and do not prevent startup.

        Returns:
            The cycle result, or None if the cycle raised
        """
        logger.info("Reconciling with shared folder...")
        result = self._run_cycle(WatchSource.REMOTE)
        if result is not None:
            logger.info(f"Startup reconciliation: {result.status.value}")
        return result

    def start(self):
        """Arm the debouncer, the filesystem observer and the dispatch loop."""
        if self._running:
            logger.warning("Orchestrator already running")
            return
        if not self._initialized:
            self.initialize()

        logger.info("Starting orchestrator...")

        self.debouncer = Debouncer()
        self.debouncer.start()

        sync = self.config.sync
        self.change_watcher = ChangeWatcher(sync.background_path, sync.shared_folder)
        try:
            self.change_watcher.start()
        except OSError as e:
            self.change_watcher.stop()
            self.debouncer.shutdown(wait=False)
            raise StartupError(f"Cannot watch for changes: {e}") from e

        self._dispatch_thread = Thread(target=self._dispatch_loop, name="wallsync-dispatch", daemon=True)
        self._dispatch_thread.start()

        self._running = True
        logger.info("Orchestrator started")

    def stop(self):
        """
        Stop accepting events, drop pending timers and wait for running cycles.
        """
        if not self._running:
            return

        logger.info("Stopping orchestrator...")
        self._running = False

        # Closes the stream too, which ends the dispatch loop
        self.change_watcher.stop()

        if self._dispatch_thread:
            self._dispatch_thread.join(timeout=10)

        self.debouncer.shutdown(wait=True)

        logger.info("Orchestrator stopped")

    def _dispatch_loop(self):
        """Feed change events into the debouncer, one key per source."""
        logger.info("Dispatch loop started")

        delays = {
            WatchSource.LOCAL: self.config.sync.local_debounce_ms,
            WatchSource.REMOTE: self.config.sync.remote_debounce_ms,
        }

        for event in self.change_watcher.stream:
            source = event.source
            try:
                self.debouncer.schedule(
                    source.value,
                    delays[source],
                    lambda source=source: self._run_cycle(source)
                )
            except RuntimeError:
                # Debouncer already shut down
                break

        logger.info("Dispatch loop stopped")

    def _run_cycle(self, source: WatchSource) -> Optional[CycleResult]:
        """Run one cycle; never lets an exception escape to the caller."""
        watcher = self.local_watcher if source == WatchSource.LOCAL else self.remote_watcher
        try:
            result = watcher.run_cycle()
        except Exception as e:
            logger.error(f"Error in {source.value} cycle: {e}", exc_info=True)
            self._record(source, CycleStatus.FAILED)
            return None

        self._record(source, result.status)
        return result

    def _record(self, source: WatchSource, status: CycleStatus):
        with self._stats_lock:
            self._stats[source.value][status.value] += 1

    def is_running(self) -> bool:
        """Check if the event-driven watchers are armed."""
        return self._running

    def get_stats(self) -> Dict[str, Dict[str, int]]:
        """Per-source cycle counters."""
        with self._stats_lock:
            return {source: counts.copy() for source, counts in self._stats.items()}

    def get_status(self) -> dict:
        """
        Get current orchestrator status.

        Returns:
            Dictionary with status information
        """
        return {
            "running": self._running,
            "watched_paths": self.change_watcher.get_watched_paths() if self.change_watcher else [],
            "pending_debounce": self.debouncer.pending_keys() if self.debouncer and self._running else [],
            "handled_count": len(self.store),
            "cycle_stats": self.get_stats()
        }
