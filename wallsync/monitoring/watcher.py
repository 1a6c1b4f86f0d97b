"""
File System Watcher

Watches the local background file and the shared folder with watchdog and
turns the relevant notifications into ChangeEvents on an EventStream.
No work happens on the observer thread beyond filtering and enqueueing.

Author: WallSync Project
License: MIT
"""

from pathlib import Path
from typing import Dict, List, Optional
from watchdog.events import (
    EVENT_TYPE_CLOSED,
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from .events import ChangeEvent, EventStream, WatchSource
from ..core.artifact import is_artifact_name
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Opened / closed-without-write events are ignored: reading the background
# file during a cycle must not trigger another cycle.
CHANGE_EVENT_TYPES = {
    EVENT_TYPE_CREATED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    EVENT_TYPE_CLOSED,
    EVENT_TYPE_DELETED,
}


def _event_paths(event: FileSystemEvent) -> List[str]:
    paths = [event.src_path]
    dest = getattr(event, "dest_path", "")
    if dest:
        paths.append(dest)
    # watchdog may report bytes paths
    return [p.decode() if isinstance(p, bytes) else p for p in paths]


class ChangeHandler(FileSystemEventHandler):
    """
    Base handler: filters watchdog events and publishes matches to a stream.
    """

    source: WatchSource

    def __init__(self, stream: EventStream):
        super().__init__()
        self.stream = stream

    def matches(self, path: str) -> bool:
        raise NotImplementedError

    def on_any_event(self, event: FileSystemEvent):
        if event.is_directory or event.event_type not in CHANGE_EVENT_TYPES:
            return

        for path in _event_paths(event):
            if self.matches(path):
                logger.debug(f"{self.source.value} change ({event.event_type}): {path}")
                self.stream.publish(ChangeEvent(
                    source=self.source,
                    path=path,
                    event_type=event.event_type
                ))
                return


class BackgroundFileHandler(ChangeHandler):
    """
    Reports changes to the single local background file.

    The parent directory is watched, so an atomic replace (delete + create or
    rename onto the name) is seen the same way as an in-place write.
    """

    source = WatchSource.LOCAL

    def __init__(self, stream: EventStream, background_path: str):
        super().__init__(stream)
        self.background_path = Path(background_path)

    def matches(self, path: str) -> bool:
        return Path(path) == self.background_path


class SharedFolderHandler(ChangeHandler):
    """Reports artifacts appearing or changing in the shared folder."""

    source = WatchSource.REMOTE

    def __init__(self, stream: EventStream, shared_folder: str):
        super().__init__(stream)
        self.shared_folder = Path(shared_folder)

    def matches(self, path: str) -> bool:
        candidate = Path(path)
        return candidate.parent == self.shared_folder and is_artifact_name(candidate.name)


class ChangeWatcher:
    """
    Owns the watchdog observer for both watch targets.

    Events are published to ``self.stream``; consume it with an explicit
    loop. A stopped watcher cannot be restarted because its stream is closed.
    """

    def __init__(self, background_path: str, shared_folder: str, stream: Optional[EventStream] = None):
        """
        Initialize the watcher.

        Args:
            background_path: Local background file
            shared_folder: Shared folder directory
            stream: Stream to publish to (a new one if None)
        """
        self.background_path = Path(background_path)
        self.shared_folder = Path(shared_folder)
        self.stream = stream or EventStream()
        self.observer = Observer()
        self.handlers: Dict[str, ChangeHandler] = {}
        self._running = False

        logger.info("ChangeWatcher initialized")

    def _schedule(self, handler: ChangeHandler, directory: Path):
        if not directory.is_dir():
            raise FileNotFoundError(f"Watch directory does not exist: {directory}")
        self.observer.schedule(handler, str(directory), recursive=False)
        self.handlers[str(directory)] = handler
        logger.info(f"Watching {handler.source.value} changes in: {directory}")

    def start(self):
        """Arm the observer for the background file's directory and the shared folder."""
        if self._running:
            logger.warning("ChangeWatcher already running")
            return

        self._schedule(
            BackgroundFileHandler(self.stream, str(self.background_path)),
            self.background_path.parent
        )
        self._schedule(
            SharedFolderHandler(self.stream, str(self.shared_folder)),
            self.shared_folder
        )

        self.observer.start()
        self._running = True
        logger.info("ChangeWatcher started")

    def stop(self):
        """Stop the observer and close the stream."""
        if self._running:
            self.observer.stop()
            self.observer.join(timeout=5)
            self._running = False
            logger.info("ChangeWatcher stopped")

        self.stream.close()

    def is_running(self) -> bool:
        """Check if the watcher is currently running."""
        return self._running

    def get_watched_paths(self) -> List[str]:
        """Directories currently scheduled on the observer."""
        return list(self.handlers.keys())
