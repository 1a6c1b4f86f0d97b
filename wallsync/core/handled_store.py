"""
Handled-Set Store

Durable record of the wallpaper identifiers this machine has already
published or applied. It is the only thing that stops the local and remote
watchers from bouncing the same wallpaper back and forth, so every
read-modify-write goes through one lock and every write is atomic.

Persisted format::

    { "handledWallpapers": ["wallpaper-2024-06-15T14-30-00", ...] }

Author: WallSync Project
License: MIT
"""

import json
import os
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Optional, Set, Union

from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError

from ..exceptions import CorruptStateError
from ..utils.file_ops import atomic_write_json
from ..utils.logger import get_logger

logger = get_logger(__name__)


class HandledSetRecord(BaseModel):
    """On-disk schema of the handled-set."""

    model_config = ConfigDict(populate_by_name=True)

    handled_wallpapers: List[StrictStr] = Field(alias="handledWallpapers")


def read_handled_set(path: Union[str, Path]) -> Set[str]:
    """
    Read a persisted handled-set.

    Args:
        path: State file path

    Returns:
        Set of identifiers; empty if the file does not exist

    Raises:
        CorruptStateError: If the file exists but is not valid JSON or does
            not match the schema
    """
    try:
        with open(path, 'rb') as f:
            raw = f.read()
    except FileNotFoundError:
        return set()

    try:
        record = HandledSetRecord.model_validate(json.loads(raw))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise CorruptStateError(f"Handled-set {path} is not valid JSON: {e}") from e
    except ValidationError as e:
        raise CorruptStateError(f"Handled-set {path} does not match schema: {e}") from e

    return set(record.handled_wallpapers)


def write_handled_set(path: Union[str, Path], identifiers: Set[str]) -> None:
    """Atomically persist a handled-set (sorted, for stable diffs)."""
    record = HandledSetRecord(handled_wallpapers=sorted(identifiers))
    atomic_write_json(path, record.model_dump(by_alias=True))


class HandledSetStore:
    """
    Thread-safe, persistent set of handled wallpaper identifiers.

    ``mark_handled`` only returns once the identifier is on disk.
    ``claim`` turns "is it handled?" plus the work that follows into one
    step: while a claim is held, no other caller can claim the same
    identifier.
    """

    def __init__(self, state_path: Union[str, Path], quarantine_corrupt: bool = True):
        """
        Initialize the store.

        Args:
            state_path: Where the handled-set is persisted
            quarantine_corrupt: Rename an unreadable state file aside before
                starting over with an empty set
        """
        self.state_path = Path(state_path)
        self.quarantine_corrupt = quarantine_corrupt

        self._lock = threading.RLock()
        self._handled: Set[str] = set()
        self._in_flight: Set[str] = set()
        self._loaded = False
        self.quarantined_path: Optional[Path] = None

    def load(self) -> int:
        """
        Load the persisted set, replacing the in-memory one.

        A corrupt file is logged, optionally quarantined, and replaced by an
        empty set.

        Returns:
            Number of identifiers loaded
        """
        with self._lock:
            try:
                self._handled = read_handled_set(self.state_path)
            except CorruptStateError as e:
                logger.error(f"{e}; starting with an empty handled-set, old wallpapers may be re-applied")
                self._handled = set()
                if self.quarantine_corrupt:
                    self.quarantined_path = self._quarantine()

            self._loaded = True
            logger.info(f"Loaded {len(self._handled)} handled wallpapers from {self.state_path}")
            return len(self._handled)

    def _quarantine(self) -> Optional[Path]:
        """Move the corrupt state file aside so it can be inspected later."""
        stamp = datetime.now().strftime("%Y%m%d%H%M%S")
        target = self.state_path.with_name(f"{self.state_path.name}.corrupt-{stamp}")
        try:
            os.replace(self.state_path, target)
        except OSError as e:
            logger.error(f"Could not quarantine {self.state_path}: {e}")
            return None
        logger.warning(f"Corrupt handled-set moved to {target}")
        return target

    def _ensure_loaded(self):
        if not self._loaded:
            self.load()

    def contains(self, identifier: str) -> bool:
        """Check whether an identifier has been handled."""
        with self._lock:
            self._ensure_loaded()
            return identifier in self._handled

    __contains__ = contains

    def mark_handled(self, identifier: str) -> bool:
        """
        Durably record an identifier as handled.

        Args:
            identifier: Artifact identifier

        Returns:
            True if newly added, False if it was already handled

        Raises:
            OSError: If the set could not be persisted; the identifier is
                then not considered handled
        """
        with self._lock:
            self._ensure_loaded()
            if identifier in self._handled:
                return False

            self._handled.add(identifier)
            try:
                write_handled_set(self.state_path, self._handled)
            except OSError:
                self._handled.discard(identifier)
                raise

            logger.debug(f"Marked handled: {identifier}")
            return True

    @contextmanager
    def claim(self, identifier: str) -> Iterator[bool]:
        """
        Reserve an identifier for one reconciliation pass.

        Yields True when the caller owns the identifier and may act on it
        (calling ``mark_handled`` on success), False when it is already
        handled or another pass currently holds it. The lock is not held
        while the caller works.
        """
        with self._lock:
            self._ensure_loaded()
            acquired = identifier not in self._handled and identifier not in self._in_flight
            if acquired:
                self._in_flight.add(identifier)

        try:
            yield acquired
        finally:
            if acquired:
                with self._lock:
                    self._in_flight.discard(identifier)

    def snapshot(self) -> Set[str]:
        """Copy of the handled identifiers."""
        with self._lock:
            self._ensure_loaded()
            return set(self._handled)

    def __len__(self) -> int:
        with self._lock:
            self._ensure_loaded()
            return len(self._handled)
