"""Loguru sink configuration shared by the CLI and scripts."""

from __future__ import annotations

import sys

from loguru import logger

from config import get_settings

LOG_FORMAT = "<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}"


def configure_logging(level: str | None = None, log_file: str | None = None) -> None:
    """
    Replace the default sink with stderr and an optional rotating file.

    Args:
        level: Minimum level (defaults to settings.log_level)
        log_file: File sink path (defaults to settings.log_file)
    """
    settings = get_settings()
    level = level or settings.log_level
    log_file = log_file or settings.log_file

    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT)

    if log_file:
        logger.add(
            log_file,
            level=level,
            rotation="10 MB",
            retention=5,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        )
