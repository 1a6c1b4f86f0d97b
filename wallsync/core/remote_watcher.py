"""
Remote Change Watcher

Brings this machine to the newest wallpaper found in the shared folder.

Unlike the local side, the identifier is recorded only *after* the desktop
accepted the wallpaper, so a failed apply is retried by a later pass instead
of being skipped forever.

Author: WallSync Project
License: MIT
"""

from pathlib import Path
from typing import Union

from .artifact import scan_shared_folder, select_newest
from .handled_store import HandledSetStore
from .results import CycleResult, CycleStatus
from ..bridge.executor import ApplyWallpaperBridge
from ..utils.file_ops import is_regular_file
from ..utils.logger import get_logger

logger = get_logger(__name__)


class RemoteChangeWatcher:
    """Applies the newest unhandled artifact from the shared folder."""

    def __init__(
        self,
        shared_folder: Union[str, Path],
        store: HandledSetStore,
        bridge: ApplyWallpaperBridge
    ):
        """
        Initialize the remote watcher.

        Args:
            shared_folder: Folder scanned for artifacts
            store: Handled-set shared with the local watcher
            bridge: Applies a wallpaper to the desktop
        """
        self.shared_folder = Path(shared_folder)
        self.store = store
        self.bridge = bridge

    def run_cycle(self) -> CycleResult:
        """
        Run one reconciliation pass.

        Returns:
            CycleResult: APPLIED, ALREADY_HANDLED, NO_ARTIFACTS,
            SKIPPED_MISSING or FAILED
        """
        newest = select_newest(scan_shared_folder(self.shared_folder))
        if newest is None:
            logger.debug(f"No wallpapers in shared folder: {self.shared_folder}")
            return CycleResult(status=CycleStatus.NO_ARTIFACTS)

        identifier = newest.identifier

        with self.store.claim(identifier) as claimed:
            if not claimed:
                logger.debug(f"Newest wallpaper already handled: {identifier}")
                return CycleResult(status=CycleStatus.ALREADY_HANDLED, identifier=identifier)

            if not is_regular_file(newest.path):
                logger.debug(f"Wallpaper vanished before it could be applied: {newest.path}")
                return CycleResult(
                    status=CycleStatus.SKIPPED_MISSING,
                    identifier=identifier,
                    path=newest.path
                )

            logger.info(f"Applying remote wallpaper: {identifier}")
            result = self.bridge.apply(newest.path)

            if not result.success:
                logger.error(f"Could not apply {identifier}, will retry on a later pass: {result.error_message}")
                return CycleResult(
                    status=CycleStatus.FAILED,
                    identifier=identifier,
                    path=newest.path,
                    error_message=result.error_message or "Apply failed"
                )

            try:
                self.store.mark_handled(identifier)
            except OSError as e:
                # Applied but not recorded: a later pass re-applies the same file
                logger.error(f"Applied {identifier} but could not record it as handled: {e}")
                return CycleResult(
                    status=CycleStatus.FAILED,
                    identifier=identifier,
                    path=newest.path,
                    error_message=f"Handled-set write failed: {e}"
                )

        return CycleResult(status=CycleStatus.APPLIED, identifier=identifier, path=newest.path)
