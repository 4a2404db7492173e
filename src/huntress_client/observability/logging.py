"""Logging utilities for the client.

The request pipeline never reaches for a module-level logger: it logs through
whatever `Logger` it is constructed with and stays silent by default.

Usage example:
    from huntress_client.observability.logging import get_logger

    logger = get_logger("huntress_client.cli")
    client = build_client(config, logger=logger)
"""

from __future__ import annotations

import logging
import time
from typing import override

from ..protocols import Logger

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


class NullLogger(Logger):
    """Logger that discards everything."""

    @override
    def debug(self, msg: str, *args: object) -> None:
        pass

    @override
    def info(self, msg: str, *args: object) -> None:
        pass

    @override
    def warning(self, msg: str, *args: object) -> None:
        pass

    @override
    def error(self, msg: str, *args: object) -> None:
        pass


def get_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """Return a standard logger configured for UTC timestamps.

    Args:
        name: Logger name (use a stable module-qualified name).
        level: Level applied the first time the logger is configured.

    Returns:
        A logger with a single stream handler and a consistent UTC format.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(fmt=_LOG_FORMAT, datefmt=_LOG_DATE_FORMAT)
        formatter.converter = time.gmtime
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(level)
        logger.propagate = False
    return logger
