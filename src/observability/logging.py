"""Structured logging for the ranking engine.

Events are structlog key/value records. The ranking owner travels in
contextvars, so events emitted deep inside the store and the step machine
carry the ``user_id`` of the session that triggered them.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, TextIO

import structlog


if TYPE_CHECKING:
    from src.settings.app import AppSettings


def _processors(json_format: bool) -> list[structlog.types.Processor]:
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer(sort_keys=True)
        if json_format
        else structlog.dev.ConsoleRenderer(colors=True)
    )
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        renderer,
    ]


def configure_logging(
    level: int = logging.INFO,
    output: TextIO = sys.stderr,
    json_format: bool = True,
) -> None:
    """Configure structlog for the ranking engine.

    Args:
        level: Minimum level to emit (default: INFO).
        output: Output stream (default: stderr).
        json_format: JSON lines when True, colored console output otherwise.
    """
    structlog.configure(
        processors=_processors(json_format),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output),
        cache_logger_on_first_use=False,
    )

    # Route standard library logging to the same stream
    logging.basicConfig(format="%(message)s", stream=output, level=level)


def configure_logging_from_settings(
    settings: "AppSettings",
    output: TextIO = sys.stderr,
) -> None:
    """Configure logging from LOG_LEVEL and LOG_JSON.

    Args:
        settings: Environment settings.
        output: Output stream (default: stderr).
    """
    configure_logging(
        level=settings.logging_level(),
        output=output,
        json_format=settings.log_json,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a bound logger instance."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger


@contextmanager
def session_context(user_id: str) -> Iterator[None]:
    """Tag every event logged inside the block with the ranking owner.

    The previous value is restored on exit, so sessions running in
    separate tasks, or nested in each other, keep their own owner.

    Args:
        user_id: Owner of the ranking being worked on.
    """
    with structlog.contextvars.bound_contextvars(user_id=user_id):
        yield
