"""Logging setup for tkal.

The interactive view owns the terminal, so everything goes to rotating
files under ~/Library/Logs/:
- tkal.log: all records at the configured level
- tkal-error.log: ERROR and above only

Usage:
    from tkal.logging import setup_logging

    # Initialize once at startup
    setup_logging(log_level="DEBUG")

    # Modules log through the standard hierarchy
    logger = logging.getLogger(__name__)
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

# Default log directory (macOS standard location)
DEFAULT_LOG_DIR = Path.home() / "Library" / "Logs"

# Default rotation settings
DEFAULT_MAX_BYTES = 5 * 1024 * 1024  # 5MB
DEFAULT_BACKUP_COUNT = 3

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

ROOT_LOGGER = "tkal"

_handlers: list[logging.Handler] = []


def setup_logging(
    log_dir: Path | None = None,
    log_level: str = "INFO",
    max_bytes: int | None = None,
    backup_count: int | None = None,
) -> None:
    """Attach rotating file handlers to the ``tkal`` logger.

    Calling it again replaces the previous handlers.

    Args:
        log_dir: Directory for log files (default: ~/Library/Logs)
        log_level: Minimum log level (default: INFO)
        max_bytes: Max size per log file before rotation (default: 5MB)
        backup_count: Number of backup files to keep (default: 3)
    """
    reset_logging()

    log_dir = log_dir or DEFAULT_LOG_DIR
    max_bytes = max_bytes or DEFAULT_MAX_BYTES
    backup_count = backup_count if backup_count is not None else DEFAULT_BACKUP_COUNT

    log_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger(ROOT_LOGGER)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    # Keep records off stderr while curses is drawing
    root_logger.propagate = False

    formatter = logging.Formatter(LOG_FORMAT)

    main_handler = RotatingFileHandler(
        log_dir / "tkal.log",
        maxBytes=max_bytes,
        backupCount=backup_count,
    )
    main_handler.setFormatter(formatter)

    error_handler = RotatingFileHandler(
        log_dir / "tkal-error.log",
        maxBytes=max_bytes,
        backupCount=backup_count,
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(formatter)

    for handler in (main_handler, error_handler):
        root_logger.addHandler(handler)
        _handlers.append(handler)


def reset_logging() -> None:
    """Remove and close handlers installed by setup_logging()."""
    root_logger = logging.getLogger(ROOT_LOGGER)
    for handler in _handlers:
        root_logger.removeHandler(handler)
        handler.close()
    _handlers.clear()
    root_logger.propagate = True
