"""Loguru logging configuration for the `catalog` CLI."""

from __future__ import annotations

import sys

from loguru import logger

_LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{function}:{line} | {message}"


def setup_logging(log_level: str = "INFO") -> None:
    """
    Replace loguru's default sink with a single stderr sink.

    Library modules only emit through `loguru.logger`, so nothing is printed
    until a caller installs a sink here (the CLI does, tests don't need to).
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level=log_level.upper(),
        format=_LOG_FORMAT,
        serialize=False,
    )
