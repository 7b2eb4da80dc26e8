"""Tests for CLI logging setup."""

from __future__ import annotations

import io
import logging
from collections.abc import Iterator

import pytest

from rfcpath.logging_config import LOGGER_NAME, configure_logging


@pytest.fixture(autouse=True)
def _restore_logger() -> Iterator[None]:
    logger = logging.getLogger(LOGGER_NAME)
    handlers = list(logger.handlers)
    level = logger.level
    propagate = logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


def test_verbose_logging_writes_info_to_stream() -> None:
    """Verbose mode should emit INFO records with the level prefix."""
    stream = io.StringIO()
    configure_logging(True, stream)

    logging.getLogger(LOGGER_NAME).info("Selected %d nodes", 3)

    assert stream.getvalue() == "INFO: Selected 3 nodes\n"


def test_quiet_logging_drops_info() -> None:
    """Without verbose, INFO records should not be emitted."""
    configure_logging(False)
    logger = logging.getLogger(LOGGER_NAME)

    assert not logger.isEnabledFor(logging.INFO)
    assert logger.isEnabledFor(logging.WARNING)
    assert logger.handlers == []
    assert logger.propagate is False


def test_reconfiguring_replaces_handlers() -> None:
    """Configuring twice should not duplicate handlers."""
    configure_logging(True, io.StringIO())
    configure_logging(True, io.StringIO())

    assert len(logging.getLogger(LOGGER_NAME).handlers) == 1


def test_verbose_logging_defaults_to_stderr(capsys: pytest.CaptureFixture[str]) -> None:
    """Log records should not mix with query results on stdout."""
    configure_logging(True)

    logging.getLogger(LOGGER_NAME).info("hello")
    captured = capsys.readouterr()

    assert captured.out == ""
    assert "INFO: hello" in captured.err
