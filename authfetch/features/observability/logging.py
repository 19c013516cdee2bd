"""Structured logging configuration."""

import logging
import sys
from typing import TextIO

import structlog

from authfetch.settings.app import AppSettings


def configure_logging(
    level: int | str = logging.INFO,
    output: TextIO = sys.stderr,
    json_format: bool = True,
) -> None:
    """Configure structured logging for the application.

    Sets up structlog with JSON output format and standard processors
    for timestamps, log levels, and context binding.

    Args:
        level: Logging level, numeric or name (default: INFO).
        output: Output stream (default: stderr).
        json_format: Whether to use JSON format (default: True).
    """
    if isinstance(level, str):
        level = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=output,
        level=level,
    )


def configure_logging_from_settings(
    settings: AppSettings, output: TextIO = sys.stderr
) -> None:
    """Configure logging from the ``AUTHFETCH_LOG_*`` settings.

    Args:
        settings: Loaded application settings.
        output: Output stream (default: stderr).
    """
    configure_logging(
        level=settings.log_level, output=output, json_format=settings.log_json
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a bound logger instance.

    Args:
        name: Optional logger name.

    Returns:
        Bound logger instance.
    """
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger


def bind_fetch_context(fetch_id: str) -> None:
    """Bind a fetch identifier to log messages emitted from this context.

    The network stack binds the id while it dispatches a fetch, so
    authenticators and interceptors called during dispatch log with it.
    Transport callbacks run on worker threads and do not inherit the
    binding; the stack also binds ``fetch_id`` on its own loggers.

    Args:
        fetch_id: Identifier of the fetch.
    """
    structlog.contextvars.bind_contextvars(fetch_id=fetch_id)


def clear_fetch_context() -> None:
    """Clear fetch context from log messages."""
    structlog.contextvars.unbind_contextvars("fetch_id")
