"""Logging helpers for now-next builds."""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

_LOGGER_NAME = "now_next"
_CONSOLE_FORMAT = "[now-next] %(levelname)s %(message)s"
# Lambda packaging runs on named worker threads; keep them apart in the file sink.
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(threadName)s]: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger under the ``now_next`` hierarchy, e.g. ``now_next.driver``."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


@contextmanager
def log_step(logger: logging.Logger, message: str, *args: object) -> Iterator[None]:
    """Log ``message`` at info on entry and its duration at debug on success."""
    logger.info(message, *args)
    started = time.perf_counter()
    yield
    logger.debug("Finished in %.2fs: " + message, time.perf_counter() - started, *args)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Send ``now_next`` records to stderr and, optionally, to ``log_file``.

    Repeated calls replace the previous handlers instead of stacking them.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG if log_file is not None else level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        sink = logging.FileHandler(log_file, encoding="utf-8")
        sink.setLevel(logging.DEBUG)
        sink.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(sink)

    return logger


__all__ = ["configure_logging", "get_logger", "log_step"]
