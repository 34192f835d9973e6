"""
Logging for ethcrawler.

Only the `ethcrawler` logger tree is configured (level + a RichHandler), so
third-party libraries keep their own defaults.

    >>> from ethcrawler.logging_setup import setup_logging
    >>> setup_logging("DEBUG")
    >>> logging.getLogger("ethcrawler.tools").info("started")
"""
from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "ethcrawler"
LOG_FORMAT = "%(name)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


def setup_logging(level: str | int = "INFO", console: Console | None = None) -> logging.Logger:
    """Attach a RichHandler to the package logger once; later calls only change the level."""
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level if isinstance(level, int) else level.upper())
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(console=console or Console(stderr=True), show_path=False,
                              rich_tracebacks=True, log_time_format=LOG_DATE_FORMAT)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False
    return logger
