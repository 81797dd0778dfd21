"""Logging setup shared by the function handler, dev server and CLI.

Every record carries the id of the invocation that produced it, so log lines
from concurrent dev-server threads or a warm function container can be told
apart. Outside an invocation the id renders as ``-``.
"""

from __future__ import annotations

import contextvars
import logging
import sys
from typing import IO, Optional

ROOT_LOGGER = "chatrelay"
NO_REQUEST = "-"

_request_id: contextvars.ContextVar[str] = contextvars.ContextVar("chatrelay_request_id", default=NO_REQUEST)

VERBOSITY = (logging.WARNING, logging.INFO, logging.DEBUG)

TRACE_FORMAT = "[%(asctime)s] %(levelname)s %(request_id)s %(name)s: %(message)s"
PLAIN_FORMAT = "%(levelname)s %(request_id)s %(message)s"


class RequestIdFilter(logging.Filter):
    """Stamp records with the current invocation id."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id.get()
        return True


def bind_request_id(request_id: Optional[str]) -> None:
    """Attach ``request_id`` to log records emitted from this context."""
    _request_id.set(request_id or NO_REQUEST)


def current_request_id() -> str:
    return _request_id.get()


def resolve_level(level: str = "INFO", verbose: int = 0, quiet: bool = False) -> int:
    """Combine the configured level with CLI verbosity flags."""
    if quiet:
        return logging.ERROR
    if verbose:
        return VERBOSITY[min(verbose, len(VERBOSITY) - 1)]
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(
    level: str = "INFO",
    verbose: int = 0,
    quiet: bool = False,
    stream: Optional[IO[str]] = None,
) -> logging.Logger:
    """Install a single stderr handler on the ``chatrelay`` logger."""
    effective_level = resolve_level(level, verbose, quiet)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(effective_level)
    logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(effective_level)
    handler.addFilter(RequestIdFilter())
    fmt = TRACE_FORMAT if effective_level <= logging.DEBUG else PLAIN_FORMAT
    handler.setFormatter(logging.Formatter(fmt, datefmt="%Y-%m-%dT%H:%M:%S"))
    logger.addHandler(handler)
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER)
