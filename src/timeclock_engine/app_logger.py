"""Logging setup for the time clock engine."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure the root handler once and return the package logger."""
    resolved = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=resolved, format=LOG_FORMAT)

    logger = logging.getLogger("timeclock_engine")
    logger.setLevel(resolved)
    return logger
