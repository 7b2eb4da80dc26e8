"""Logging configuration for the rfcpath CLI."""

from __future__ import annotations

import logging
import sys
from typing import TextIO


LOGGER_NAME = "rfcpath"
LOG_FORMAT = "%(levelname)s: %(message)s"


def configure_logging(verbose: bool, stream: TextIO | None = None) -> None:
    """Configure logging output based on verbosity.

    Query results go to stdout, so log records are written to stderr unless
    another stream is given.

    Args:
        verbose: Whether to enable INFO logging
        stream: Destination stream, stderr by default
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.propagate = False
    logger.handlers.clear()

    if not verbose:
        logger.setLevel(logging.WARNING)
        return

    logger.setLevel(logging.INFO)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setLevel(logging.INFO)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
