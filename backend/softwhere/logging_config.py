"""
Logging setup for the estimator service.

Modules log through ``logging.getLogger(__name__)``; ``setup_logging`` is
called once by the API entry point.
"""
import logging
from typing import Union

LOG_FORMAT = "%(asctime)s - %(name)s:%(lineno)d - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ROOT_LOGGER = "softwhere"

_LOGGING_CONFIGURED = False


def setup_logging(level: Union[str, int] = "INFO") -> logging.Logger:
    """Attach a single stream handler to the package logger. Safe to call twice."""
    global _LOGGING_CONFIGURED

    logger = logging.getLogger(ROOT_LOGGER)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger.setLevel(level)

    if _LOGGING_CONFIGURED:
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(handler)
    _LOGGING_CONFIGURED = True
    return logger
