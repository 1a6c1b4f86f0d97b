"""
Change Events

Typed change notifications and the blocking stream they are delivered
through. watchdog's observer thread pushes into the stream; one dispatch
loop consumes it.

Author: WallSync Project
License: MIT
"""

import queue
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from ..utils.logger import get_logger

logger = get_logger(__name__)


class WatchSource(str, Enum):
    """Where a change was observed. Also the debounce key."""
    LOCAL = "local"
    REMOTE = "remote"


@dataclass(frozen=True)
class ChangeEvent:
    """A raw filesystem notification relevant to one of the watchers."""
    source: WatchSource
    path: str
    event_type: str
    timestamp: datetime = field(default_factory=datetime.now, compare=False)


_CLOSED = object()


class EventStream:
    """
    Iterator of ChangeEvents.

    Iteration blocks until an event arrives and ends once ``close()`` has
    been called and the events queued before it are drained. A closed stream
    cannot be reopened, and events published after closing are discarded.
    """

    def __init__(self, max_size: int = 0):
        self._queue: "queue.Queue" = queue.Queue(maxsize=max_size)
        self._closed = threading.Event()
        self._exhausted = False

    def publish(self, event: ChangeEvent) -> bool:
        """
        Add an event to the stream.

        Returns:
            False if the stream is closed or full and the event was dropped
        """
        if self._closed.is_set():
            return False
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            logger.warning(f"Event stream full, dropping {event.source.value} event for {event.path}")
            return False
        return True

    def close(self):
        """Stop the stream; consumers finish after the already-queued events."""
        if self._closed.is_set():
            return
        self._closed.set()
        # Blocking put so the sentinel is never lost on a full queue
        self._queue.put(_CLOSED)

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def __iter__(self):
        return self

    def __next__(self) -> ChangeEvent:
        if self._exhausted:
            raise StopIteration
        item = self._queue.get()
        if item is _CLOSED:
            self._exhausted = True
            raise StopIteration
        return item

    def qsize(self) -> int:
        return self._queue.qsize()
