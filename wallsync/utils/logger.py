"""
Logging Configuration

Console and rotating-file logging for the daemon, with optional JSON output
for when the journal or a log shipper consumes it.

Author: WallSync Project
License: MIT
"""

import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler
from pythonjsonlogger import jsonlogger
from typing import Optional

ROOT_LOGGER_NAME = "wallsync"

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
CONSOLE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s [%(threadName)s %(funcName)s:%(lineno)d] %(message)s"
JSON_FIELDS = "%(asctime)s %(name)s %(levelname)s %(threadName)s %(message)s"


class ColoredFormatter(logging.Formatter):
    """
    Formatter for colored console output.
    """

    LEVEL_COLORS = {
        logging.DEBUG: '\033[36m',
        logging.INFO: '\033[32m',
        logging.WARNING: '\033[33m',
        logging.ERROR: '\033[31m',
        logging.CRITICAL: '\033[1;31m',
    }
    RESET = '\033[0m'

    def format(self, record):
        """Color the level name; the record is restored afterwards for other handlers."""
        color = self.LEVEL_COLORS.get(record.levelno)
        if color is None:
            return super().format(record)

        plain = record.levelname
        record.levelname = f"{color}{plain}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = plain


def _build_formatter(json_format: bool, colored: bool, for_file: bool) -> logging.Formatter:
    if json_format:
        return jsonlogger.JsonFormatter(JSON_FIELDS)
    if for_file:
        return logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT)
    if colored:
        return ColoredFormatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT)
    return logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT)


def setup_logging(
    log_level: str = "INFO",
    log_to_file: bool = False,
    log_file_path: Optional[str] = None,
    log_rotation_size: int = 10 * 1024 * 1024,
    log_retention_count: int = 5,
    json_format: bool = False,
    colored: Optional[bool] = None
) -> logging.Logger:
    """
    Configure the ``wallsync`` logger.

    Calling it again replaces the handlers of the previous call.

    Args:
        log_level: Level name, e.g. INFO
        log_to_file: Also write to a rotating log file
        log_file_path: Log file location (required with log_to_file)
        log_rotation_size: Bytes before the file is rotated
        log_retention_count: Rotated files to keep
        json_format: One JSON object per line instead of text
        colored: ANSI colors on the console; None means only on a TTY

    Returns:
        The configured logger

    Raises:
        ValueError: If file logging is requested without a path
        OSError: If the log directory or file cannot be created
    """
    level_name = log_level.upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level)
    root.propagate = False

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    if colored is None:
        colored = sys.stdout.isatty()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(_build_formatter(json_format, colored, for_file=False))
    root.addHandler(console)

    if log_to_file:
        if not log_file_path:
            raise ValueError("log_file_path is required when log_to_file is enabled")

        path = Path(log_file_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        rotating = RotatingFileHandler(
            path,
            maxBytes=log_rotation_size,
            backupCount=log_retention_count,
            encoding='utf-8'
        )
        rotating.setFormatter(_build_formatter(json_format, False, for_file=True))
        root.addHandler(rotating)

    root.info(f"Logging at {level_name}" + (f", writing to {path}" if log_to_file else ""))
    return root


def get_logger(name: str) -> logging.Logger:
    """
    Logger for a module, nested under ``wallsync`` so one setup call covers it.

    Args:
        name: Usually __name__

    Returns:
        Logger instance
    """
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
