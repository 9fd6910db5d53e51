"""Logging setup shared by the client, the stores and the CLI."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from agriassist.config import get_settings

ROOT_LOGGER_NAME = "agriassist"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class LoggingConfig:
    """Attach a single stream handler to the ``agriassist`` logger."""

    _configured = False

    def __init__(self, level: Optional[str] = None) -> None:
        log_level = (level or get_settings().log_level or "INFO").upper()
        logger = logging.getLogger(ROOT_LOGGER_NAME)
        logger.setLevel(log_level)
        if not LoggingConfig._configured:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.addHandler(handler)
            LoggingConfig._configured = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the package logger, or a child of it when ``name`` is given."""
    if not name:
        return logging.getLogger(ROOT_LOGGER_NAME)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
