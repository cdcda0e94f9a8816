"""
Logging setup (loguru).
"""
from __future__ import annotations

import sys

from loguru import logger

from .config import Settings


def configure_logging(settings: Settings) -> None:
    """Replace the default sink with stderr at the configured level, plus an optional file."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level.upper(),
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | {name}:{line} - {message}",
    )
    if settings.log_file:
        logger.add(settings.log_file, level=settings.log_level.upper(), rotation="10 MB", retention=5)
    logger.debug(f"Logging configured at {settings.log_level.upper()}")
