"""Logging setup for the pagebridge namespace."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from pagebridge.core.secure_io import secure_mkdir

logger = logging.getLogger(__name__)

LOGGER_NAME = "pagebridge"
LOG_FILE_NAME = "pagebridge.log"


def configure_logging(
    log_dir: Path,
    level: int = logging.INFO,
    console_level: int = logging.WARNING,
) -> Path:
    """Configure file and console logging for the pagebridge namespace.

    Logs are written to `{log_dir}/pagebridge.log` with automatic rotation
    (max 5MB per file, 3 backup files). Console output goes to stderr at a
    quieter level. Calling this again replaces the previous handlers.

    Args:
        log_dir: Directory for the log file. Created if it doesn't exist.
        level: Logging level for file output (default INFO).
        console_level: Logging level for console output (default WARNING).

    Returns:
        Path to the log file.
    """
    secure_mkdir(log_dir)

    log_file = log_dir / LOG_FILE_NAME

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=5 * 1024 * 1024,  # 5MB
        backupCount=3,
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    ))

    package_logger = logging.getLogger(LOGGER_NAME)
    package_logger.setLevel(min(level, console_level))

    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    package_logger.addHandler(file_handler)
    package_logger.addHandler(console_handler)
    package_logger.propagate = False

    logger.info("Logging configured: %s", log_file)
    return log_file
