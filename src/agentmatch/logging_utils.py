"""Loguru sink configuration."""

from __future__ import annotations

import sys

from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{module}</cyan>:<cyan>{line}</cyan> - "
    "{message}"
)


def _stderr_sink(message: str) -> None:
    # Resolve sys.stderr per write so redirected streams are honoured
    sys.stderr.write(message)


def configure_logging(level: str = "WARNING") -> None:
    """Replace loguru's sinks with a single stderr sink at ``level``."""
    logger.remove()
    logger.add(
        _stderr_sink,
        level=level.upper(),
        format=LOG_FORMAT,
        colorize=sys.stderr.isatty(),
    )
