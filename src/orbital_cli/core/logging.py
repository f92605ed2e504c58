"""Structured logging configuration for the CLI."""

import logging
import sys
from typing import Any

import structlog


DEFAULT_LOG_LEVEL = "WARNING"


def _resolve_level(level: str) -> int:
    """Map a level name to its numeric value.

    Raises:
        ValueError: If the level name is unknown
    """
    levels = logging.getLevelNamesMapping()
    try:
        return levels[level.upper()]
    except KeyError:
        raise ValueError(
            f"Unknown log level '{level}'. Use one of: DEBUG, INFO, WARNING, ERROR"
        ) from None


def setup_logging(level: str = DEFAULT_LOG_LEVEL, *, json_logs: bool = False) -> None:
    """Configure structlog to write to stderr.

    Logs go to stderr so they never interleave with the rich UI on stdout.
    The default level keeps the interactive session quiet; DEBUG shows the
    device polling loop tick by tick.

    Args:
        level: Minimum level name to emit
        json_logs: Render one JSON object per line instead of console output

    """
    numeric_level = _resolve_level(level)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_logs:
        processors.extend(
            [
                structlog.processors.dict_tracebacks,
                structlog.processors.JSONRenderer(),
            ]
        )
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
