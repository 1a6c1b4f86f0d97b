"""
File Operation Utilities

Atomic writes, retrying copies into the shared folder and directory
helpers.

Author: WallSync Project
License: MIT
"""

import os
import json
import time
import shutil
import tempfile
from pathlib import Path
from typing import Any, Callable, Optional, Union

from .logger import get_logger
from ..exceptions import PublishError

logger = get_logger(__name__)

PathLike = Union[str, Path]


def atomic_write_json(path: PathLike, data: Any, indent: int = 2) -> None:
    """
    Write JSON so that readers only ever see the old or the new content.

    The data is written to a temporary file in the destination directory,
    flushed to disk and renamed over the destination.

    Args:
        path: Destination file
        data: JSON-serializable object
        indent: Indentation passed to json.dump
    """
    destination = Path(path)
    destination.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{destination.name}.",
        suffix=".tmp",
        dir=str(destination.parent)
    )
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=indent)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, destination)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


def atomic_copy_file(source: PathLike, destination: PathLike) -> Path:
    """
    Copy a file so the destination name only appears once its bytes are complete.

    The temporary file is hidden (leading dot) so directory scanners that
    match on name never pick it up half-written.

    Args:
        source: File to copy
        destination: Final path of the copy

    Returns:
        Destination path
    """
    source_path = Path(source)
    dest_path = Path(destination)

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{dest_path.name}.",
        suffix=".part",
        dir=str(dest_path.parent)
    )
    try:
        with os.fdopen(fd, 'wb') as dst, open(source_path, 'rb') as src:
            shutil.copyfileobj(src, dst)
            dst.flush()
            os.fsync(dst.fileno())
        os.replace(tmp_name, dest_path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise

    return dest_path


def copy_with_retry(
    source: PathLike,
    destination: PathLike,
    attempts: int = 3,
    base_delay: float = 0.5,
    sleep: Callable[[float], None] = time.sleep
) -> Path:
    """
    Copy a file, retrying transient I/O failures with linear backoff.

    Attempt N (1-based) that fails waits ``base_delay * N`` seconds before
    the next one.

    Args:
        source: File to copy
        destination: Final path of the copy
        attempts: Total number of attempts (at least 1)
        base_delay: Backoff unit in seconds
        sleep: Sleep function (injectable for tests)

    Returns:
        Destination path

    Raises:
        PublishError: If every attempt failed
    """
    last_error: Optional[OSError] = None

    for attempt in range(1, attempts + 1):
        try:
            return atomic_copy_file(source, destination)
        except OSError as e:
            last_error = e
            logger.warning(
                f"Copy {source} -> {destination} failed (attempt {attempt}/{attempts}): {e}"
            )
            if attempt < attempts:
                sleep(base_delay * attempt)

    raise PublishError(
        f"Could not copy {source} to {destination} after {attempts} attempts: {last_error}"
    ) from last_error


def is_regular_file(path: PathLike) -> bool:
    """Check that a path exists and is a regular file (symlinks followed)."""
    try:
        return Path(path).is_file()
    except OSError:
        return False


def ensure_directory(directory: PathLike) -> bool:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        directory: Directory path

    Returns:
        True if directory exists or was created
    """
    try:
        Path(directory).mkdir(parents=True, exist_ok=True)
        return True
    except OSError as e:
        logger.error(f"Failed to create directory {directory}: {e}")
        return False
