"""
Logger Module

All break tracker loggers are children of one "break_tracker" logger, which
owns a console handler (stderr) and a rotating log file.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

APP_LOGGER_NAME = "break_tracker"

_LOG_FILE_NAME = "break_tracker.log"
_MAX_LOG_BYTES = 5 * 1024 * 1024
_BACKUP_COUNT = 3

# Environment overrides for service deployments
LOG_FILE_ENV = "BREAK_TRACKER_LOG_FILE"
LOG_LEVEL_ENV = "BREAK_TRACKER_LOG_LEVEL"

_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _get_project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent.parent


def _configure_app_logger(log_file: Optional[str] = None) -> logging.Logger:
    """Attach handlers to the shared parent logger, once."""
    app_logger = logging.getLogger(APP_LOGGER_NAME)
    if app_logger.handlers:
        return app_logger

    app_logger.setLevel(logging.DEBUG)
    formatter = logging.Formatter(fmt=_FORMAT, datefmt=_DATE_FORMAT)

    console_level = os.environ.get(LOG_LEVEL_ENV, "INFO").upper()
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(getattr(logging, console_level, logging.INFO))
    console_handler.setFormatter(formatter)
    app_logger.addHandler(console_handler)

    log_file = log_file or os.environ.get(LOG_FILE_ENV)
    log_path = Path(log_file) if log_file else _get_project_root() / _LOG_FILE_NAME
    try:
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=_MAX_LOG_BYTES,
            backupCount=_BACKUP_COUNT,
            encoding="utf-8"
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        app_logger.addHandler(file_handler)
    except OSError as e:
        # Console only
        app_logger.warning(f"Cannot open log file {log_path}: {e}")

    return app_logger


def get_logger(name: str, log_file: Optional[str] = None) -> logging.Logger:
    """
    Get a component logger such as "BreakService".

    Args:
        name: Component name, becomes "break_tracker.<name>"
        log_file: Log file used if the shared handlers are not set up yet.
            Defaults to $BREAK_TRACKER_LOG_FILE, then break_tracker.log in
            the project root

    Returns:
        Logger that propagates to the shared handlers
    """
    _configure_app_logger(log_file)
    return logging.getLogger(f"{APP_LOGGER_NAME}.{name}")
