"""Logging configuration for the Funding Manifest Checker."""

import logging
import sys
from typing import Optional

from funding_checker.config import Settings, get_settings

PACKAGE_LOGGER = "funding_checker"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(settings: Optional[Settings] = None) -> int:
    """
    Configures application logging from the LOG_LEVEL setting.

    The level is applied to the package logger as well as the root logger,
    so it still takes effect when uvicorn has already installed handlers.

    Args:
        settings: Settings to read the level from; defaults to the environment

    Returns:
        The numeric level in effect
    """
    settings = settings or get_settings()
    log_level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )
    logging.getLogger(PACKAGE_LOGGER).setLevel(log_level)

    # GitHub requests are logged by the fetcher itself
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logging.getLogger(PACKAGE_LOGGER).debug(f"Logging configured at {logging.getLevelName(log_level)}")
    return log_level


def get_logger(name: str) -> logging.Logger:
    """Gets a logger for a module."""
    return logging.getLogger(name)
