"""Logging for cbfmt. Records go to stderr; stdout carries formatted documents."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_LOGGER_NAME = "cbfmt"
_STREAM_FORMAT = "[cbfmt] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(threadName)s]: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the cbfmt hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def _attach(logger: logging.Logger, handler: logging.Handler, level: int, fmt: str) -> None:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Configure the cbfmt logger.

    Only warnings (skipped codeblocks, unreadable paths) are shown unless
    ``verbose`` is set. ``log_file`` receives the same records with the
    formatter thread name attached.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # main() may run more than once per process (tests); start from a clean slate.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    _attach(logger, logging.StreamHandler(sys.stderr), level, _STREAM_FORMAT)
    if log_file is not None:
        _attach(logger, logging.FileHandler(log_file, encoding="utf-8"), level, _FILE_FORMAT)
    return logger


__all__ = ["configure_logging", "get_logger"]
