"""
Structured logging for the stock ledger.

Console output in development, one JSON object per line elsewhere. Ledger errors
passed as ``error=`` are flattened into ``error_code``/``error_kind`` fields, and
the adjustment path binds ``part_id`` (plus ``idempotency_key`` when given) so
retry and storage events carry the part they belong to.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from partstock.config.settings import Settings, get_settings
from partstock.core.exceptions import PartStockError

QUIET_LOGGERS = ("aiosqlite", "uvicorn.access")


def add_service_context(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    settings = get_settings()
    event_dict.setdefault("service", settings.app_name)
    event_dict.setdefault("version", settings.app_version)
    event_dict.setdefault("environment", settings.environment)
    return event_dict


def flatten_ledger_error(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Expand a ``PartStockError`` under ``error`` into searchable fields."""
    error = event_dict.get("error")
    if isinstance(error, PartStockError):
        event_dict["error"] = error.message
        event_dict["error_code"] = error.code
        event_dict["error_kind"] = error.kind
        if error.details:
            event_dict["error_details"] = error.details
    return event_dict


@contextmanager
def ledger_context(part_id: int, idempotency_key: str | None = None) -> Iterator[None]:
    """Bind the part under adjustment to every event logged inside the block."""
    fields: dict[str, Any] = {"part_id": part_id}
    if idempotency_key:
        fields["idempotency_key"] = idempotency_key
    with structlog.contextvars.bound_contextvars(**fields):
        yield


def build_processors(settings: Settings) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_service_context,
        flatten_ledger_error,
    ]
    if settings.environment == "development":
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    else:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return processors


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structlog over the stdlib root logger."""
    settings = settings or get_settings()
    structlog.configure(
        processors=build_processors(settings),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=settings.log_level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
