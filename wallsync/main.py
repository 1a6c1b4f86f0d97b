"""
Command-Line Entry Point

Loads configuration, catches up with the shared folder and keeps both
watchers running until SIGINT or SIGTERM.

Author: WallSync Project
License: MIT
"""

import argparse
import signal
import sys
from threading import Event
from typing import List, Optional

from . import __version__
from .config.config_loader import ConfigLoader
from .core.orchestrator import Orchestrator
from .core.results import CycleStatus
from .exceptions import ConfigError, StartupError
from .utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wallsync",
        description="Keep the desktop wallpaper in sync across machines through a shared folder."
    )
    parser.add_argument("-c", "--config", help="Path to config.yaml")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Override the configured log level"
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Reconcile with the shared folder once and exit"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the daemon.

    Returns:
        Process exit status
    """
    args = build_parser().parse_args(argv)

    try:
        config = ConfigLoader(args.config).load()
    except ConfigError as e:
        print(f"wallsync: {e}", file=sys.stderr)
        return 1

    app = config.app
    try:
        setup_logging(
            log_level=args.log_level or app.log_level.value,
            log_to_file=app.log_to_file,
            log_file_path=app.log_file_path,
            log_rotation_size=app.log_rotation_size,
            log_retention_count=app.log_retention_count,
            json_format=app.json_format
        )
    except OSError as e:
        print(f"wallsync: cannot set up logging: {e}", file=sys.stderr)
        return 1

    orchestrator = Orchestrator(config)

    try:
        orchestrator.initialize()
    except StartupError as e:
        logger.critical(f"Startup failed: {e}")
        return 1

    result = orchestrator.reconcile_on_startup()

    if args.once:
        return 1 if result is None or result.status == CycleStatus.FAILED else 0

    stop_requested = Event()

    def _request_stop(signum, frame):
        logger.info(f"Received signal {signal.Signals(signum).name}, shutting down")
        stop_requested.set()

    signal.signal(signal.SIGINT, _request_stop)
    signal.signal(signal.SIGTERM, _request_stop)

    try:
        orchestrator.start()
    except StartupError as e:
        logger.critical(f"Startup failed: {e}")
        return 1

    try:
        while not stop_requested.wait(timeout=1.0):
            pass
    finally:
        orchestrator.stop()

    return 0


if __name__ == "__main__":
    sys.exit(main())
