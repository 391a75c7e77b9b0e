"""structlog setup.

Production renders one JSON object per line; development renders coloured
console output. The HTTP middleware binds a ``correlation_id`` into the
context variables so all lines of one request share it.
"""

import logging
import sys
import uuid
from typing import Any

import structlog
from structlog._config import BoundLoggerLazyProxy
from structlog.types import EventDict, Processor

from dataplayground.core.config import Settings

ROOT_LOGGER = "dataplayground"
_STDLIB_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "sqlalchemy.engine")


def new_correlation_id() -> str:
    return f"cid_{uuid.uuid4().hex[:12]}"


def _ensure_correlation_id(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    # Lines logged outside a request still get an ID of their own.
    event_dict.setdefault("correlation_id", new_correlation_id())
    return event_dict


def _event_to_message(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    if "event" in event_dict:
        event_dict["message"] = event_dict.pop("event")
    return event_dict


def _renderers(settings: Settings) -> list[Processor]:
    if settings.is_development or settings.log_format == "console":
        return [structlog.dev.ConsoleRenderer(exception_formatter=structlog.dev.plain_traceback)]
    return [
        structlog.processors.format_exc_info,
        _event_to_message,
        structlog.processors.JSONRenderer(),
    ]


def configure_logging(settings: Settings) -> None:
    """Configure structlog and the stdlib loggers used by uvicorn and SQLAlchemy."""
    level = logging.getLevelNamesMapping()[settings.log_level]

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        _ensure_correlation_id,
        *_renderers(settings),
    ]
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=settings.is_production,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in _STDLIB_LOGGERS:
        logging.getLogger(name).setLevel(level)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a logger whose lines carry ``logger=<name>``.

    ``name`` is usually the caller's ``__name__``. It is bound as an initial
    value, so module-level loggers stay lazy until logging is configured.
    """
    # ``logger`` clashes with wrap_logger's first parameter, so the lazy proxy
    # is built directly with it as an initial value.
    return BoundLoggerLazyProxy(
        None, initial_values={"logger": name or ROOT_LOGGER}, logger_factory_args=()
    )


def bind_correlation_id(correlation_id: str) -> None:
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
