"""Logging setup for the command-line entry point.

The library itself only creates module loggers; handlers are installed here,
once, by the CLI.

Usage:
    from ledgerkit.utils.logging import setup_logging
    setup_logging("INFO")
"""

import logging
import os
import sys
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_LEVEL_ENV = "LEDGERKIT_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"

# Loggers that flood the output at INFO
NOISY_LOGGERS = [
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "sqlalchemy.orm",
]


def resolve_level(level: Optional[Union[str, int]] = None) -> int:
    """Turn a level name (or number) into a logging level.

    Falls back to LEDGERKIT_LOG_LEVEL, then WARNING.

    Raises:
        ValueError: If the name is not a logging level
    """
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL)
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level '{level}'")
    return resolved


def setup_logging(level: Optional[Union[str, int]] = None) -> logging.Logger:
    """Install a single stderr handler on the ledgerkit logger.

    Args:
        level: Level name or number; see resolve_level

    Returns:
        The configured ``ledgerkit`` logger
    """
    log_level = resolve_level(level)

    logger = logging.getLogger("ledgerkit")
    logger.setLevel(log_level)
    # Remove existing handlers (avoid duplicates on repeated setup)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    logger.debug("Logging initialized at %s", logging.getLevelName(log_level))
    return logger
