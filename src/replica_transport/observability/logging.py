"""Shared logging for the replica transport.

Every module logs through `get_logger` so that timestamps are UTC and the
format is stable across the executor, connector and CLI.

Usage example:
    from replica_transport.observability.logging import get_logger

    logger = get_logger("replica_transport.executor")
    logger.debug("Attempt %d: %s %s", attempt, method, url)
"""

from __future__ import annotations

import logging
import time

ROOT_LOGGER_NAME = "replica_transport"

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"
_LEVELS = {"debug": logging.DEBUG, "info": logging.INFO, "warning": logging.WARNING}


class UnknownLogLevelError(ValueError):
    """Raised when a log level name is not supported."""

    def __init__(self, level: str) -> None:
        super().__init__(f"Unknown log level {level!r}; expected one of {sorted(_LEVELS)}.")


def get_logger(name: str) -> logging.Logger:
    """Return a logger with a single UTC-formatted stream handler.

    Args:
        name: Logger name (use a stable module-qualified name).
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(fmt=_LOG_FORMAT, datefmt=_LOG_DATE_FORMAT)
        formatter.converter = time.gmtime
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        logger.propagate = False
    return logger


def set_log_level(level: str) -> None:
    """Apply a level to every replica_transport logger created so far."""
    try:
        numeric = _LEVELS[level.strip().lower()]
    except KeyError as exc:
        raise UnknownLogLevelError(level) from exc
    for name, logger in logging.Logger.manager.loggerDict.items():
        if isinstance(logger, logging.Logger) and (
            name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}.")
        ):
            logger.setLevel(numeric)
