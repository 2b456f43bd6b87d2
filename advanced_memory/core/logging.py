"""
Structured logging configuration using structlog.

Development runs get the colored console renderer, production runs get
one JSON object per line. Every service logs through `LoggerMixin`, and
index/add/search/verify calls are summarised with `log_operation`.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

# Client libraries that log every request at INFO.
NOISY_LOGGERS = ("httpx", "httpcore", "qdrant_client", "sentence_transformers", "urllib3")


def setup_logging(
    level: str = "INFO",
    json_format: bool = False,
    add_timestamp: bool = True,
) -> None:
    """
    Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: If True, output JSON logs (for production)
        add_timestamp: If True, add timestamp to log entries
    """
    numeric_level = getattr(logging, level.upper())
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=numeric_level,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if add_timestamp:
        shared_processors.insert(0, structlog.processors.TimeStamper(fmt="iso", utc=True))

    if json_format:
        shared_processors.extend([
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ])
    else:
        shared_processors.extend([
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ])

    structlog.configure(
        processors=shared_processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None, **initial_context: Any) -> structlog.stdlib.BoundLogger:
    """
    Get a logger instance with optional initial context.

    Example:
        logger = get_logger(__name__, component="memory")
        logger.info("Memory added", user_id="u-1")
    """
    logger = structlog.get_logger(name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger


class LoggerMixin:
    """Mixin that gives any service a logger bound to its class name."""

    _logger: structlog.stdlib.BoundLogger | None = None

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        if self._logger is None:
            self._logger = get_logger(
                self.__class__.__module__,
                component=self.__class__.__name__,
            )
        return self._logger


def log_operation(
    operation: str,
    success: bool = True,
    duration_ms: float | None = None,
    **kwargs: Any,
) -> None:
    """
    Summarise one service call.

    Args:
        operation: index_documents, query, add_memory, search_memory or verify
        success: Whether the call succeeded
        duration_ms: Duration in milliseconds, rounded to 0.01
        **kwargs: Call-specific counts and identifiers
    """
    logger = get_logger("operations")
    log_data = {
        "operation": operation,
        "success": success,
        **kwargs,
    }
    if duration_ms is not None:
        log_data["duration_ms"] = round(duration_ms, 2)

    if success:
        logger.info("Operation completed", **log_data)
    else:
        logger.error("Operation failed", **log_data)
