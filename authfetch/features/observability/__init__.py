"""Observability module for logging."""

from authfetch.features.observability.logging import (
    bind_fetch_context,
    clear_fetch_context,
    configure_logging,
    configure_logging_from_settings,
    get_logger,
)


__all__ = [
    "bind_fetch_context",
    "clear_fetch_context",
    "configure_logging",
    "configure_logging_from_settings",
    "get_logger",
]
