"""Logging setup for the ledgerkit package."""

import logging
import os
import sys
from typing import Optional

LOG_LEVEL_ENV_VAR = "LEDGERKIT_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"
LOG_FORMAT = "[%(asctime)s] %(levelname)s in %(module)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger("ledgerkit")


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach a stderr handler to the package logger.

    Calling it again replaces the handler, so the level can be changed.

    Args:
        level: Level name, defaults to LEDGERKIT_LOG_LEVEL or WARNING

    Raises:
        ValueError: If the level name is unknown
    """
    name = (level or os.environ.get(LOG_LEVEL_ENV_VAR) or DEFAULT_LOG_LEVEL).upper()
    numeric = logging.getLevelName(name)
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: {level}")

    logger.setLevel(numeric)
    logger.handlers.clear()
    # stdout carries command output
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
