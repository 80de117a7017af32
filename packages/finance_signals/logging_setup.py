"""Logging for ``finance_signals``.

The engine modules only ever call :func:`get_logger`; the CLI (or a host
application) calls :func:`configure_logging` once to send the package's
records somewhere.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

LOGGER_NAME = "finance_signals"
LEVEL_ENV = "FINANCE_SIGNALS_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_configured = False


def resolve_level(level: int | str | None = None) -> int:
    """``level`` if given, else ``FINANCE_SIGNALS_LOG_LEVEL``, else INFO.

    Names are case-insensitive; unknown names resolve to INFO.
    """

    raw = os.getenv(LEVEL_ENV) if level is None else level
    if isinstance(raw, int):
        return raw
    name = (raw or "").strip().upper()
    if name.isdigit():
        return int(name)
    resolved = logging.getLevelNamesMapping().get(name)
    return resolved if resolved is not None else logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Attach a single stream handler to the package logger; later calls are no-ops."""

    global _configured
    logger = logging.getLogger(LOGGER_NAME)
    if _configured:
        return logger

    for h in [h for h in logger.handlers if isinstance(h, logging.NullHandler)]:
        logger.removeHandler(h)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(resolve_level(level))
    logger.propagate = False

    _configured = True
    return logger


def get_logger(name: str) -> logging.Logger:
    root = logging.getLogger(LOGGER_NAME)
    if not _configured and not root.handlers:
        root.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "resolve_level"]
