"""
Cycle Results

Outcome of one local or remote watcher cycle.

Author: WallSync Project
License: MIT
"""

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional


class CycleStatus(Enum):
    """Status of a watcher cycle."""
    PUBLISHED = "published"
    APPLIED = "applied"
    ALREADY_HANDLED = "already_handled"
    NO_ARTIFACTS = "no_artifacts"
    SKIPPED_MISSING = "skipped_missing"
    FAILED = "failed"


class CycleResult:
    """Result of a watcher cycle."""

    def __init__(
        self,
        status: CycleStatus,
        identifier: Optional[str] = None,
        path: Optional[Path] = None,
        error_message: Optional[str] = None
    ):
        """
        Initialize cycle result.

        Args:
            status: Cycle status
            identifier: Artifact identifier involved, if any
            path: Artifact path (published or applied), if any
            error_message: Error message if failed
        """
        self.status = status
        self.identifier = identifier
        self.path = path
        self.error_message = error_message
        self.timestamp = datetime.now()

    @property
    def failed(self) -> bool:
        return self.status == CycleStatus.FAILED

    def __repr__(self) -> str:
        return f"CycleResult(status={self.status.value}, identifier={self.identifier})"
