"""
Debounced Event Coalescer

Collapses bursts of notifications into a single action per key, fired once
the key has been quiet for the requested delay. Built on APScheduler date
jobs: rescheduling a key replaces its pending job, which resets the timer.

Author: WallSync Project
License: MIT
"""

import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.date import DateTrigger

from ..utils.logger import get_logger

logger = get_logger(__name__)


class Debouncer:
    """
    Per-key debounce timers.

    - ``schedule(key, delay_ms, action)`` replaces whatever is pending for
      ``key``; ``action`` runs after ``delay_ms`` without another schedule.
    - Keys are independent.
    - Actions of the same key never run concurrently; a timer that fires
      while the previous action is still running waits for it.
    - ``shutdown()`` drops pending timers without running them.
    """

    def __init__(self, max_workers: int = 4):
        """
        Initialize the debouncer.

        Args:
            max_workers: Threads available for running actions
        """
        self.scheduler = BackgroundScheduler(
            timezone='UTC',
            executors={'default': {'type': 'threadpool', 'max_workers': max_workers}},
            job_defaults={
                'coalesce': True,
                'max_instances': max_workers,  # serialized by the per-key lock instead
                'misfire_grace_time': None  # a late timer still fires
            }
        )
        self._key_locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        self._shut_down = False

        logger.debug("Debouncer initialized")

    def start(self):
        """Start the timer thread."""
        if self._shut_down:
            raise RuntimeError("Debouncer has been shut down")
        if self.scheduler.running:
            return
        self.scheduler.start()
        logger.debug("Debouncer started")

    def _lock_for(self, key: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = self._key_locks[key] = threading.Lock()
            return lock

    def _fire(self, key: str, action: Callable[[], None]):
        with self._lock_for(key):
            logger.debug(f"Debounce fired: {key}")
            action()

    def schedule(self, key: str, delay_ms: int, action: Callable[[], None]):
        """
        Schedule ``action`` under ``key``, replacing any pending one.

        Args:
            key: Debounce key (one per watch source)
            delay_ms: Quiet period in milliseconds
            action: Zero-argument callable
        """
        if self._shut_down:
            raise RuntimeError("Debouncer has been shut down")

        run_date = datetime.now(timezone.utc) + timedelta(milliseconds=delay_ms)
        self.scheduler.add_job(
            func=self._fire,
            trigger=DateTrigger(run_date=run_date),
            args=[key, action],
            id=key,
            name=f"debounce:{key}",
            replace_existing=True
        )

    def cancel(self, key: str) -> bool:
        """
        Drop the pending action for a key.

        Returns:
            True if something was pending
        """
        try:
            self.scheduler.remove_job(key)
            return True
        except JobLookupError:
            return False

    def pending_keys(self) -> List[str]:
        """Keys with a timer that has not fired yet."""
        return [job.id for job in self.scheduler.get_jobs()]

    def shutdown(self, wait: bool = True):
        """
        Drop all pending timers and stop.

        Args:
            wait: Block until actions that are already running have finished
        """
        if self._shut_down:
            return
        self._shut_down = True

        self.scheduler.remove_all_jobs()
        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)
        logger.debug("Debouncer shut down")
