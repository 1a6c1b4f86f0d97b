"""
Apply-Wallpaper Bridge

Runs the external commands that make a file the desktop background.
The rest of the daemon only cares whether the whole application succeeded:
a partially applied wallpaper is reported as a failure so it is not
recorded as handled.

Author: WallSync Project
License: MIT
"""

import subprocess
import time
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from ..config.schema import ApplyBackend, ApplyConfig
from ..utils.logger import get_logger

logger = get_logger(__name__)


class CommandResult:
    """Result of a command execution."""

    def __init__(
        self,
        success: bool,
        stdout: str = "",
        stderr: str = "",
        exit_code: int = 0,
        error_message: Optional[str] = None
    ):
        """
        Initialize command result.

        Args:
            success: Whether command succeeded
            stdout: Standard output
            stderr: Standard error
            exit_code: Command exit code (-1 when it never ran)
            error_message: Human-readable error message
        """
        self.success = success
        self.stdout = stdout
        self.stderr = stderr
        self.exit_code = exit_code
        self.error_message = error_message

    def __bool__(self) -> bool:
        return self.success

    def __repr__(self) -> str:
        return f"CommandResult(success={self.success}, exit_code={self.exit_code})"


class CommandRunner:
    """
    Runs local commands with a timeout and bounded retries.

    Launch failures, timeouts and non-zero exits are all retried; attempt N
    that fails waits ``retry_delay * N`` seconds before the next one.
    """

    def __init__(
        self,
        timeout: int = 30,
        retry_attempts: int = 3,
        retry_delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.timeout = timeout
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay
        self._sleep = sleep

    def run(self, command: Sequence[str]) -> CommandResult:
        """
        Execute a command, retrying until it succeeds or attempts run out.

        Args:
            command: argv list

        Returns:
            Result of the last attempt
        """
        result = CommandResult(success=False, exit_code=-1, error_message="Command was not run")

        for attempt in range(1, self.retry_attempts + 1):
            if attempt > 1:
                logger.info(f"Retrying command (attempt {attempt}/{self.retry_attempts})")

            result = self._run_once(command)
            if result.success:
                return result

            if attempt < self.retry_attempts:
                self._sleep(self.retry_delay * attempt)

        return result

    def _run_once(self, command: Sequence[str]) -> CommandResult:
        logger.debug(f"Executing: {' '.join(command)}")

        try:
            completed = subprocess.run(
                list(command),
                capture_output=True,
                text=True,
                timeout=self.timeout
            )
        except FileNotFoundError:
            error_msg = f"Command not found: {command[0]}"
            logger.error(error_msg)
            return CommandResult(success=False, exit_code=-1, error_message=error_msg)
        except subprocess.TimeoutExpired:
            error_msg = f"Command timed out after {self.timeout}s: {command[0]}"
            logger.error(error_msg)
            return CommandResult(success=False, exit_code=-1, error_message=error_msg)
        except OSError as e:
            error_msg = f"Could not launch {command[0]}: {e}"
            logger.error(error_msg)
            return CommandResult(success=False, exit_code=-1, error_message=error_msg)

        success = completed.returncode == 0
        if not success:
            logger.error(f"Command failed (exit code: {completed.returncode}): {' '.join(command)}")
            if completed.stderr:
                logger.error(f"Error: {completed.stderr.strip()}")

        return CommandResult(
            success=success,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
            exit_code=completed.returncode,
            error_message=None if success else f"Exit code {completed.returncode}"
        )


class ApplyWallpaperBridge:
    """Sets a file as the desktop background."""

    def __init__(self, runner: Optional[CommandRunner] = None):
        self.runner = runner or CommandRunner()

    def build_commands(self, artifact_path: Path) -> List[List[str]]:
        """Commands that together apply ``artifact_path``."""
        raise NotImplementedError

    def apply(self, artifact_path) -> CommandResult:
        """
        Apply a wallpaper.

        Every command must succeed; the first failure stops the sequence and
        is returned.

        Args:
            artifact_path: Absolute path of the image

        Returns:
            CommandResult of the failing command, or of the last one on success
        """
        artifact_path = Path(artifact_path)
        if not artifact_path.is_absolute():
            return CommandResult(
                success=False,
                exit_code=-1,
                error_message=f"Wallpaper path must be absolute: {artifact_path}"
            )

        result = CommandResult(success=False, exit_code=-1, error_message="No apply commands configured")

        for command in self.build_commands(artifact_path):
            result = self.runner.run(command)
            if not result.success:
                logger.error(f"Applying {artifact_path.name} failed at: {' '.join(command)}")
                return result

        if result.success:
            logger.info(f"Wallpaper applied: {artifact_path}")
        return result


class GnomeWallpaperBridge(ApplyWallpaperBridge):
    """GNOME: set both the light and the dark background URIs via gsettings."""

    SCHEMA = "org.gnome.desktop.background"
    KEYS = ("picture-uri", "picture-uri-dark")

    def build_commands(self, artifact_path: Path) -> List[List[str]]:
        uri = artifact_path.as_uri()
        return [["gsettings", "set", self.SCHEMA, key, uri] for key in self.KEYS]


class CommandWallpaperBridge(ApplyWallpaperBridge):
    """User-configured commands; ``{path}`` and ``{uri}`` are substituted in every argument."""

    def __init__(self, templates: List[List[str]], runner: Optional[CommandRunner] = None):
        super().__init__(runner)
        self.templates = templates

    def build_commands(self, artifact_path: Path) -> List[List[str]]:
        path = str(artifact_path)
        uri = artifact_path.as_uri()
        return [
            [arg.replace("{path}", path).replace("{uri}", uri) for arg in template]
            for template in self.templates
        ]


def create_bridge(config: ApplyConfig) -> ApplyWallpaperBridge:
    """
    Build the bridge selected in configuration.

    Args:
        config: Apply section of the configuration

    Returns:
        Bridge instance
    """
    runner = CommandRunner(
        timeout=config.timeout,
        retry_attempts=config.retry_attempts,
        retry_delay=config.retry_delay
    )

    if config.backend == ApplyBackend.COMMAND:
        logger.info(f"Using custom apply commands ({len(config.commands)} configured)")
        return CommandWallpaperBridge(config.commands, runner)

    logger.info("Using GNOME gsettings to apply wallpapers")
    return GnomeWallpaperBridge(runner)
