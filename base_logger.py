# SPDX-License-Identifier: GPL-3.0-only
"""Logging setup shared by every module."""

import logging
import os

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)


def get_logger(name: str = None) -> logging.Logger:
    """Return a logger configured with the application log level.

    Args:
        name: Logger name, usually the calling module's ``__name__``.

    Returns:
        Configured logger instance.
    """
    logger = logging.getLogger(name)
    logger.setLevel(LOG_LEVEL)
    return logger
