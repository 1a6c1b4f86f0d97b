"""
Wallpaper Artifacts

Naming, parsing and selection of the timestamped wallpaper snapshots that
travel through the shared folder.

An artifact is named ``wallpaper-YYYY-MM-DDTHH-MM-SS`` (local time, no
extension). The name is the identity and the sort key.

Author: WallSync Project
License: MIT
"""

import os
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Union

from ..utils.logger import get_logger

logger = get_logger(__name__)

ARTIFACT_PREFIX = "wallpaper-"
TIMESTAMP_FORMAT = "%Y-%m-%dT%H-%M-%S"
ARTIFACT_PATTERN = re.compile(r"wallpaper-[0-9]{4}-[0-9]{2}-[0-9]{2}T[0-9]{2}-[0-9]{2}-[0-9]{2}")


@dataclass(frozen=True)
class WallpaperArtifact:
    """One wallpaper snapshot, identified by the time it was minted."""
    identifier: str
    timestamp: datetime
    path: Path

    @property
    def sort_key(self):
        # Equal timestamps fall back to the full identifier
        return (self.timestamp, self.identifier)

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> Optional['WallpaperArtifact']:
        """Build an artifact from a file path, or None if the name is not an artifact name."""
        path = Path(path)
        timestamp = parse_identifier(path.name)
        if timestamp is None:
            return None
        return cls(identifier=path.name, timestamp=timestamp, path=path)


def mint_identifier(now: Optional[datetime] = None) -> str:
    """
    Create the identifier for a wallpaper captured at ``now``.

    Args:
        now: Capture time (defaults to the current local time)

    Returns:
        Identifier such as ``wallpaper-2024-06-15T14-30-00``
    """
    now = now or datetime.now()
    return f"{ARTIFACT_PREFIX}{now.replace(microsecond=0).strftime(TIMESTAMP_FORMAT)}"


def parse_identifier(name: str) -> Optional[datetime]:
    """
    Recover the timestamp encoded in an artifact name.

    Returns:
        The timestamp, or None when the name does not follow the pattern or
        encodes an impossible date/time (e.g. month 13)
    """
    if not ARTIFACT_PATTERN.fullmatch(name):
        return None
    try:
        return datetime.strptime(name[len(ARTIFACT_PREFIX):], TIMESTAMP_FORMAT)
    except ValueError:
        return None


def is_artifact_name(name: str) -> bool:
    """Check whether a file name is a valid artifact identifier."""
    return parse_identifier(name) is not None


def scan_shared_folder(folder: Union[str, Path]) -> List[WallpaperArtifact]:
    """
    List the artifacts currently present in the shared folder.

    Entries that are not regular files or whose names are not valid
    identifiers (temp files, conflict copies, foreign files) are skipped.

    Args:
        folder: Shared folder path

    Returns:
        Artifacts in no particular order; empty if the folder is missing
    """
    artifacts: List[WallpaperArtifact] = []

    try:
        entries = list(os.scandir(folder))
    except FileNotFoundError:
        logger.warning(f"Shared folder does not exist: {folder}")
        return artifacts

    for entry in entries:
        artifact = WallpaperArtifact.from_path(entry.path)
        if artifact is None:
            continue
        try:
            if not entry.is_file():
                continue
        except OSError:
            continue
        artifacts.append(artifact)

    return artifacts


def select_newest(artifacts: Iterable[WallpaperArtifact]) -> Optional[WallpaperArtifact]:
    """
    Pick the most recent artifact.

    Ordering is by timestamp, then by full identifier string, so the choice
    never depends on directory listing order.

    Returns:
        The newest artifact, or None for an empty input
    """
    return max(artifacts, key=lambda a: a.sort_key, default=None)
