"""
Structured logging configuration using structlog.

Console output while developing, JSON lines everywhere else so ledger
events can be shipped and replayed when diagnosing reconciliation.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from structlog.types import Processor

from src.config.settings import Settings, get_settings

# Third-party loggers that only matter at WARNING and above
QUIET_LOGGERS = ("aiosqlite", "uvicorn.access", "httpx")


def add_app_context(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Tag events with the app and environment they came from."""
    settings = get_settings()
    event_dict["app"] = settings.app_name
    event_dict["environment"] = settings.environment
    return event_dict


def _renderer(settings: Settings) -> list[Processor]:
    log_format = settings.log_format
    if log_format == "auto":
        log_format = "console" if settings.environment == "development" else "json"

    if log_format == "console":
        return [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]
    return [
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(sort_keys=True),
    ]


def configure_logging() -> None:
    """Configure structlog and the stdlib root logger it writes through."""
    settings = get_settings()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        add_app_context,
    ]

    structlog.configure(
        processors=shared_processors + _renderer(settings),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


@contextmanager
def ledger_context(**ids: Any) -> Iterator[None]:
    """
    Bind ids (aggregates, entries, items) to every event logged in the block.

    None values are skipped. Keys passed explicitly to a log call win over
    the bound ones.
    """
    bound = {key: value for key, value in ids.items() if value is not None}
    with structlog.contextvars.bound_contextvars(**bound):
        yield


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
