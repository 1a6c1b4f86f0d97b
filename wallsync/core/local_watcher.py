"""
Local Change Watcher

Publishes a new wallpaper from the local background file into the shared
folder.

The identifier is recorded as handled *before* the copy: once the file is in
the shared folder the remote watcher of this same machine will see it, and
it must already know the wallpaper came from here.

Author: WallSync Project
License: MIT
"""

from datetime import datetime
from pathlib import Path
from typing import Callable, Union

from .artifact import mint_identifier
from .handled_store import HandledSetStore
from .results import CycleResult, CycleStatus
from ..exceptions import PublishError
from ..utils.file_ops import copy_with_retry, is_regular_file
from ..utils.logger import get_logger

logger = get_logger(__name__)


class LocalChangeWatcher:
    """Turns a change of the background file into a new shared artifact."""

    def __init__(
        self,
        background_path: Union[str, Path],
        shared_folder: Union[str, Path],
        store: HandledSetStore,
        copy_retry_attempts: int = 3,
        copy_retry_delay: float = 0.5,
        clock: Callable[[], datetime] = datetime.now,
        copy_func: Callable[..., Path] = copy_with_retry
    ):
        """
        Initialize the local watcher.

        Args:
            background_path: Local background file
            shared_folder: Destination folder for artifacts
            store: Handled-set shared with the remote watcher
            copy_retry_attempts: Copy attempts before giving up
            copy_retry_delay: Linear backoff unit in seconds
            clock: Time source for minting identifiers
            copy_func: Copy implementation (injectable for tests)
        """
        self.background_path = Path(background_path)
        self.shared_folder = Path(shared_folder)
        self.store = store
        self.copy_retry_attempts = copy_retry_attempts
        self.copy_retry_delay = copy_retry_delay
        self._clock = clock
        self._copy = copy_func

    def run_cycle(self) -> CycleResult:
        """
        Publish the current background file.

        Returns:
            CycleResult: PUBLISHED, SKIPPED_MISSING or FAILED
        """
        if not is_regular_file(self.background_path):
            logger.debug(f"Background file not present, skipping: {self.background_path}")
            return CycleResult(status=CycleStatus.SKIPPED_MISSING)

        identifier = mint_identifier(self._clock())

        try:
            self.store.mark_handled(identifier)
        except OSError as e:
            logger.error(f"Could not record {identifier} as handled, not publishing: {e}")
            return CycleResult(
                status=CycleStatus.FAILED,
                identifier=identifier,
                error_message=f"Handled-set write failed: {e}"
            )

        destination = self.shared_folder / identifier
        try:
            self._copy(
                self.background_path,
                destination,
                attempts=self.copy_retry_attempts,
                base_delay=self.copy_retry_delay
            )
        except PublishError as e:
            # Stays marked: the publish is best-effort once recorded
            logger.error(f"Publishing {identifier} failed: {e}")
            return CycleResult(
                status=CycleStatus.FAILED,
                identifier=identifier,
                error_message=str(e)
            )

        logger.info(f"Published local wallpaper as {destination}")
        return CycleResult(
            status=CycleStatus.PUBLISHED,
            identifier=identifier,
            path=destination
        )
