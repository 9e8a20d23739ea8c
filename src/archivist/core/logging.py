"""
Structured logging for the admission engine.

Every accept/reject decision, every post-process failure that is returned
instead of raised, and every rate-limiter sweep is emitted as a structlog event.
An operator can then answer "why was this submission rejected?" from the log
stream alone.

Manifesto:
    - **Events, not prose:** ``logger.info("submission_rejected", stage=...)``
    - **Correlated:** submission_id / identity are bound through contextvars
      for the duration of a ``check``

Architecture:
    ::

        configure_logging(level, json_format, service)
            │
            ▼
        TimeStamper ─► merge_contextvars ─► add_log_level ─► service.name
            ─► (JSON) ECS field names ─► JSONRenderer
            ─► (console)                ConsoleRenderer

        get_logger(__name__) binds ``logger_name=<name>`` on the lazy proxy.

Examples:
    >>> configure_from_settings(get_settings())
    >>> logger = get_logger(__name__)
    >>> logger.info("submission_rejected", stage="duplicate", kind="paper")

Tags:
    logging, structlog, json-logging, archivist

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

if TYPE_CHECKING:
    from archivist.core.settings import ArchivistSettings

# Renamed to their Elastic Common Schema names in JSON output
_ECS_FIELDS = {
    "timestamp": "@timestamp",
    "level": "log.level",
    "logger_name": "log.logger",
}

_service = "archivist"


def _add_service(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service.name", _service)
    return event_dict


def _ecs_field_names(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    for field, ecs_field in _ECS_FIELDS.items():
        if field in event_dict:
            event_dict[ecs_field] = event_dict.pop(field)
    return event_dict


def _level_number(level: str) -> int:
    number = logging.getLevelName(level.upper())
    if not isinstance(number, int):
        raise ValueError(f"unknown log level: {level!r}")
    return number


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "archivist",
) -> None:
    """Configure structlog for the process.

    Args:
        level: Minimum level (DEBUG, INFO, WARNING, ERROR)
        json_format: JSON lines when True, colored console when False,
            JSON unless stdout is a terminal when None
        service: Value of the ``service.name`` field
    """
    global _service
    _service = service

    if json_format is None:
        json_format = not sys.stdout.isatty()

    processors: list[Processor] = [
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service,
    ]
    if json_format:
        processors += [
            _ecs_field_names,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(_level_number(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_from_settings(settings: ArchivistSettings) -> None:
    """Apply ``log_level`` / ``log_format`` from settings."""
    configure_logging(level=settings.log_level, json_format=settings.log_format == "json")


def get_logger(name: str | None = None) -> Any:
    """Structured logger; ``name`` (usually ``__name__``) is bound as ``logger_name``.

    The proxy stays lazy, so loggers created at import time pick up a
    ``configure_logging`` call made later.
    """
    if name is None:
        return structlog.get_logger()
    return structlog.get_logger(name, logger_name=name)


def bind_context(**kwargs: Any) -> None:
    """Bind fields to every subsequent event in this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Bind fields for the duration of a ``with`` block.

    Example:
        with LogContext(submission_id=submission.id, kind="paper"):
            logger.info("submission_accepted")
    """

    def __init__(self, **kwargs: Any):
        self._fields = kwargs

    def __enter__(self) -> LogContext:
        bind_context(**self._fields)
        return self

    def __exit__(self, *args: Any) -> None:
        unbind_context(*self._fields)


__all__ = [
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LogContext",
]
