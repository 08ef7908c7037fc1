"""Structured logging for duckquery with structlog.

``querydf`` calls ``ensure_logging`` on entry: if the host application has not
configured structlog itself, output is set up from ``Settings`` (level and
renderer). An application that configures structlog keeps its own setup.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import Processor

if TYPE_CHECKING:
    from duckquery.core.config import Settings


def add_service_context(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Add service metadata to all log entries."""
    event_dict.setdefault("service", "duckquery")
    return event_dict


def _renderer(settings: Settings) -> list[Processor]:
    if settings.ENVIRONMENT == "development" and sys.stderr.isatty():
        return [structlog.dev.ConsoleRenderer(colors=True)]
    return [
        structlog.processors.format_exc_info,
        structlog.processors.dict_tracebacks,
        structlog.processors.JSONRenderer(),
    ]


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structlog output for duckquery.

    Lines go to stderr, filtered at ``settings.LOG_LEVEL``. Development on a
    terminal renders for the console; everything else renders JSON.

    Args:
        settings: Settings to read level and environment from. If None, the
            cached environment settings are used.
    """
    if settings is None:
        from duckquery.core.config import get_settings

        settings = get_settings()

    log_level = logging.getLevelNamesMapping().get(settings.LOG_LEVEL.upper(), logging.INFO)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        add_service_context,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        *_renderer(settings),
    ]

    # Module-level loggers must pick up later reconfiguration.
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def ensure_logging() -> None:
    """Configure logging from settings unless structlog is already configured."""
    if not structlog.is_configured():
        configure_logging()


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger.

    Args:
        name: Logger name, usually the module's ``__name__``.
    """
    return structlog.get_logger(name)


def log_progress(logger: Any, verbose: bool, event: str, **fields: Any) -> None:
    """Emit a progress line on ``logger`` only when the session is verbose."""
    if verbose:
        logger.info(event, **fields)
