"""Structured logging configuration.

This module hands out loggers that emit one JSON event per line.
It prefers structlog and falls back to standard logging if absent.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from typing import Any

from core.constants import DEFAULT_LOG_LEVEL

_CONFIGURED = False


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog or stdlib logger with structured output.
    """
    try:
        import structlog
    except ImportError:
        return _get_standard_logger(name)

    if not _CONFIGURED:
        configure_logging(os.getenv("TAGSTORE_LOG_LEVEL", DEFAULT_LOG_LEVEL))
    return structlog.get_logger(name)


def configure_logging(level_name: str) -> None:
    """Set the minimum level for structlog events.

    Loggers handed out earlier pick up the new level on their next call.

    Args:
        level_name: Standard level name such as INFO or DEBUG.
    """
    global _CONFIGURED
    try:
        import structlog
    except ImportError:
        logging.getLogger().setLevel(_resolve_level(level_name))
        return
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(sort_keys=True),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(_resolve_level(level_name)),
        logger_factory=_stderr_print_logger,
    )
    _CONFIGURED = True


def _stderr_print_logger(*_args: Any) -> Any:
    """Build a print logger on the current stderr stream."""
    import structlog

    return structlog.PrintLogger(file=sys.stderr)


def _resolve_level(level_name: str) -> int:
    """Map a level name onto a stdlib level number."""
    level_name = level_name.strip().upper()
    level = logging.getLevelName(level_name)
    return level if isinstance(level, int) else logging.INFO


def _get_standard_logger(name: str) -> Any:
    """Create a stdlib logger fallback.

    Args:
        name: Logger name.

    Returns:
        Structured adapter over a standard logger.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        logger.addHandler(handler)
        logger.setLevel(_resolve_level(os.getenv("TAGSTORE_LOG_LEVEL", DEFAULT_LOG_LEVEL)))
    return _StructuredStandardLogger(logger)


class _StructuredStandardLogger:
    """Stdlib logger adapter that accepts keyword event fields."""

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def debug(self, event: str, **fields: object) -> None:
        self._logger.debug(_render_event(event, fields))

    def info(self, event: str, **fields: object) -> None:
        self._logger.info(_render_event(event, fields))

    def warning(self, event: str, **fields: object) -> None:
        self._logger.warning(_render_event(event, fields))

    def error(self, event: str, **fields: object) -> None:
        self._logger.error(_render_event(event, fields))


def _render_event(event: str, fields: dict[str, object]) -> str:
    """Render an event and its fields as one JSON line."""
    if not fields:
        return event
    return json.dumps({"event": event, **fields}, sort_keys=True, default=str)
