"""Logging configuration for TaskMind.

Log lines go to stderr so that command output on stdout (task lists,
sync summaries) can be piped without interleaved log records.
"""

import logging
import sys

import structlog

from taskmind.config import get_settings

# Third-party loggers that are chatty at INFO (one line per HTTP request).
NOISY_LOGGERS = ("httpx", "httpcore", "google_genai", "google_genai.models")


def resolve_level(name: str | None) -> int:
    """Map a level name to a ``logging`` constant, falling back to INFO."""
    level = getattr(logging, (name or "").upper(), None)
    return level if isinstance(level, int) else logging.INFO


def setup_logging(level: str | None = None) -> None:
    """Configure structured logging.

    Args:
        level: Overrides ``LOG_LEVEL`` for this process (the CLI passes
            ``DEBUG`` for ``--verbose``).
    """
    settings = get_settings()
    log_level = resolve_level(level or settings.log_level)

    renderer: structlog.typing.Processor = (
        structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
        if settings.is_development
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=log_level)

    # One line per HTTP request otherwise
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance."""
    return structlog.get_logger(name)
