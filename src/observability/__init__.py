"""Observability module for structured logging."""

from src.observability.logging import (
    configure_logging,
    configure_logging_from_settings,
    get_logger,
    session_context,
)


__all__ = [
    "configure_logging",
    "configure_logging_from_settings",
    "get_logger",
    "session_context",
]
