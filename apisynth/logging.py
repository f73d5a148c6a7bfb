"""Logging utilities for apisynth builds."""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

_LOGGER_NAME = "apisynth"
_CONSOLE_FORMAT = "[apisynth] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a step-scoped logger under the apisynth hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Send apisynth records to the console, and to ``log_file`` at full detail when given."""
    console_level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG if log_file is not None else console_level)
    logger.propagate = False

    # Handlers are replaced on every call so repeated builds in one process do not duplicate output.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger


@contextmanager
def log_step(logger: logging.Logger, description: str) -> Iterator[None]:
    """Log the start and elapsed time of one pipeline step."""
    logger.debug("%s...", description)
    started = time.perf_counter()
    yield
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.debug("%s done in %.0f ms", description, elapsed_ms)


__all__ = ["configure_logging", "get_logger", "log_step"]
