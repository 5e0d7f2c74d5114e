"""Structured logging and tracing for sls-rust builds.

Log events go through structlog to stderr so they never mix with the CLI's
own output. Each build stage of each target runs inside ``span``, which is
an OpenTelemetry span plus a started/completed/failed series of log events.
"""

from __future__ import annotations

import logging
import sys
import time
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from functools import cache
from typing import TYPE_CHECKING, Any, TextIO

import structlog
from opentelemetry import trace
from opentelemetry.trace import SpanKind, Status, StatusCode

if TYPE_CHECKING:
    from opentelemetry.trace import Span, Tracer
    from structlog.stdlib import BoundLogger

INSTRUMENTATION_NAME = "sls_rust"
SPAN_ATTRIBUTE_PREFIX = "sls_rust."


@cache
def get_logger() -> BoundLogger:
    """Package-wide logger; bind ``component=...`` for a narrower one."""
    return structlog.get_logger(INSTRUMENTATION_NAME)  # type: ignore[no-any-return]


@cache
def get_tracer() -> Tracer:
    return trace.get_tracer(INSTRUMENTATION_NAME)


def configure_logging(
    *,
    log_level: str = "WARNING",
    json_format: bool = False,
    add_timestamp: bool = True,
    stream: TextIO | None = None,
) -> None:
    """Configure structlog for a build run.

    Args:
        log_level: Minimum level name (DEBUG, INFO, WARNING, ERROR).
        json_format: Render one JSON object per line instead of console text.
        add_timestamp: Add a UTC ISO ``timestamp`` to every event.
        stream: Destination for log lines (defaults to stderr).

    Example:
        >>> configure_logging(log_level="DEBUG", json_format=True)
    """
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if add_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso", utc=True))
    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, log_level.upper())),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stderr),
        cache_logger_on_first_use=True,
    )


@contextmanager
def span(
    name: str,
    *,
    attributes: Mapping[str, Any] | None = None,
    logger: BoundLogger | None = None,
) -> Iterator[Span]:
    """Run a block as a traced, logged build step.

    Logs ``<name>_started`` at debug level, then ``<name>_completed`` or
    ``<name>_failed``, both with ``duration_ms``. The attributes are bound
    to every event and set on the span under the ``sls_rust.`` prefix.
    Exceptions are recorded on the span and re-raised.

    Args:
        name: Step name (e.g., "compile", "package").
        attributes: Step attributes (e.g., function and project names).
        logger: Logger to use (defaults to the package logger).

    Yields:
        The active OpenTelemetry span.

    Example:
        >>> with span("compile", attributes={"project": "hello"}):
        ...     runner.run(build_command(config), cwd=project_dir, label="hello")
    """
    attrs = dict(attributes or {})
    log = (logger or get_logger()).bind(**attrs)
    span_attrs = {f"{SPAN_ATTRIBUTE_PREFIX}{key}": value for key, value in attrs.items()}
    start = time.monotonic()

    with get_tracer().start_as_current_span(
        name,
        kind=SpanKind.INTERNAL,
        attributes=span_attrs,
        record_exception=False,
        set_status_on_exception=False,
    ) as current:
        log.debug(f"{name}_started")
        try:
            yield current
        except Exception as exc:
            current.record_exception(exc)
            current.set_status(Status(StatusCode.ERROR, str(exc)))
            log.error(f"{name}_failed", error=str(exc), duration_ms=_elapsed_ms(start))
            raise
        current.set_status(Status(StatusCode.OK))
        log.info(f"{name}_completed", duration_ms=_elapsed_ms(start))


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
