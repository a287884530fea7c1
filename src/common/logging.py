"""Logging configuration for the link rotator."""

from __future__ import annotations

import logging
import os
import sys

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _level_from_env(default: int) -> int:
    name = os.getenv("LINK_ROTATOR_LOG_LEVEL", "").upper()
    if not name:
        return default
    return logging.getLevelName(name) if isinstance(logging.getLevelName(name), int) else default


def setup_logging(
    level: int = logging.INFO,
    module_name: str = "link_rotator",
) -> logging.Logger:
    """Configure and return a logger with consistent formatting.

    The level can be overridden with the LINK_ROTATOR_LOG_LEVEL
    environment variable (e.g. "DEBUG").

    Args:
        level: Logging level (default INFO).
        module_name: Name for the logger instance.

    Returns:
        Configured logger.
    """
    logger = logging.getLogger(module_name)

    if logger.handlers:
        return logger

    level = _level_from_env(level)
    logger.setLevel(level)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(fmt=DEFAULT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    )
    logger.addHandler(handler)

    return logger
