"""Structured logging and OpenTelemetry spans for daffodil-bin.

This module provides:
- Structured logging setup via structlog
- An OpenTelemetry span helper wrapped around each saved processor build
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

if TYPE_CHECKING:
    from opentelemetry.trace import Span, Tracer
    from structlog.stdlib import BoundLogger

TRACER_NAME = "daffodil.bin"

# Environment variable used to hand the log level to the child interpreter
LOG_LEVEL_ENV_VAR = "DAFFODIL_BIN_LOG_LEVEL"

_tracer: Tracer | None = None


def get_logger(name: str = TRACER_NAME) -> BoundLogger:
    """Get a structlog logger.

    Args:
        name: Logger name.

    Returns:
        structlog BoundLogger instance.
    """
    return structlog.get_logger(name)  # type: ignore[no-any-return]


def get_tracer() -> Tracer:
    """Get the OpenTelemetry tracer for daffodil-bin."""
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer(TRACER_NAME)
    return _tracer


def configure_logging(
    *,
    log_level: str = "INFO",
    json_format: bool = False,
    add_timestamp: bool = True,
) -> None:
    """Configure structured logging.

    Args:
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: If True, output JSON. If False, output human-readable lines.
        add_timestamp: If True, add ISO timestamp to log entries.

    Example:
        >>> configure_logging(log_level="DEBUG")
    """
    processors: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if add_timestamp:
        processors.insert(1, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    level = getattr(logging, log_level.upper())
    logging.basicConfig(format="%(message)s", level=level)
    logging.getLogger().setLevel(level)


@contextmanager
def span(
    name: str,
    *,
    attributes: dict[str, Any] | None = None,
) -> Iterator[Span]:
    """Create an OpenTelemetry span with structured logging.

    Args:
        name: Span name (e.g., "save_parser").
        attributes: Optional span attributes, also logged.

    Yields:
        OpenTelemetry Span instance.

    Example:
        >>> with span("save_parser", attributes={"classifier": "daffodil360"}):
        ...     launch()
    """
    logger = get_logger()
    attrs = attributes or {}

    with get_tracer().start_as_current_span(name, attributes=attrs) as s:
        logger.debug(f"{name}_started", **attrs)
        try:
            yield s
        except Exception as exc:
            s.set_status(Status(StatusCode.ERROR, str(exc)))
            s.record_exception(exc)
            logger.debug(f"{name}_failed", error=str(exc), **attrs)
            raise
        s.set_status(Status(StatusCode.OK))
        logger.debug(f"{name}_completed", **attrs)
