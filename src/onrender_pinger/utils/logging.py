"""Structured logging infrastructure with correlation ID tracking.

This module provides the logging setup for onrender-pinger: a console
handler whose records carry the ID of the cycle that produced them, and a
redacting filter that keeps webhook secrets out of log output.

Correlation IDs live in a ContextVar, so every asyncio task spawned inside a
cycle (one per probe, one per webhook delivery) inherits the cycle's ID
without manual context passing.
"""

import contextvars
import logging
import sys
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Final, override

from onrender_pinger.utils.sanitization import (
    sanitize_args,
    sanitize_value,
)

correlation_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id",
    default=None,
)

DEFAULT_LOG_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] - %(message)s"

# Attributes every LogRecord has; anything else arrived through extra={}
_STANDARD_RECORD_ATTRS: Final[frozenset[str]] = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
        "message",
        "asctime",
        "correlation_id",
    }
)


class CorrelationIDFilter(logging.Filter):
    """Logging filter that adds the current correlation ID to log records.

    Records emitted outside any cycle get ``N/A``.
    """

    @override
    def filter(self, record: logging.LogRecord) -> bool:
        correlation_id = correlation_id_var.get()
        record.correlation_id = correlation_id if correlation_id is not None else "N/A"
        return True


class SecretRedactingFilter(logging.Filter):
    """Logging filter that redacts sensitive information from log records.

    Sanitizes the message text, the ``%``-formatting args tuple, and any
    fields passed through ``extra={}``.

    Examples:
        >>> logger.info("POST to %s", "https://hooks.example.com/hook?token=abc")
        # Logged as: "POST to https://hooks.example.com/hook?token=<REDACTED>"
    """

    @override
    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            sanitized_msg = sanitize_value(record.msg)
            if isinstance(sanitized_msg, str):
                record.msg = sanitized_msg

        if record.args and isinstance(record.args, tuple):
            record.args = sanitize_args(record.args)

        for attr_name in list(record.__dict__.keys()):
            if attr_name in _STANDARD_RECORD_ATTRS or attr_name.startswith("_"):
                continue
            attr_value: object = getattr(record, attr_name)  # pyright: ignore[reportAny]
            setattr(record, attr_name, sanitize_value(attr_value, field_name=attr_name))

        return True


def configure_logging(
    *,
    log_level: str = "INFO",
    enable_console: bool = True,
) -> None:
    """Configure application logging with correlation IDs and secret redaction.

    Replaces any handlers already installed on the root logger so repeated
    calls (CLI override after config load) do not duplicate output.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        enable_console: Enable stdout handler

    Example:
        >>> configure_logging(log_level="DEBUG")
        >>> logging.getLogger(__name__).info("Pinger starting")
    """
    root_logger = logging.getLogger()

    level = getattr(logging, log_level.upper(), logging.INFO)
    root_logger.setLevel(level)

    root_logger.handlers.clear()

    if enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(DEFAULT_LOG_FORMAT))
        console_handler.addFilter(CorrelationIDFilter())
        console_handler.addFilter(SecretRedactingFilter())
        root_logger.addHandler(console_handler)

    # aiohttp's access log duplicates our own request logging
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for the specified module.

    Args:
        name: Logger name (typically __name__ from calling module)
    """
    return logging.getLogger(name)


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID for the current context."""
    _ = correlation_id_var.set(correlation_id)


def get_correlation_id() -> str | None:
    """Get the current correlation ID from context."""
    return correlation_id_var.get()


def clear_correlation_id() -> None:
    """Clear the correlation ID from the current context."""
    _ = correlation_id_var.set(None)


@contextmanager
def correlation_scope(correlation_id: str) -> Iterator[str]:
    """Bind ``correlation_id`` for the duration of the block.

    The previous value is restored on exit, so nested or concurrent cycles
    never leak their IDs into each other.

    Example:
        >>> with correlation_scope("cycle-1"):
        ...     logger.info("Probing")  # carries [cycle-1]
    """
    token = correlation_id_var.set(correlation_id)
    try:
        yield correlation_id
    finally:
        correlation_id_var.reset(token)


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    *,
    extra: Mapping[str, object] | None = None,
) -> None:
    """Log a message with additional context fields.

    Example:
        >>> log_with_context(
        ...     logger,
        ...     logging.INFO,
        ...     "Webhook delivered",
        ...     extra={"endpoint_format": "generic", "delivery_time_ms": 84.2},
        ... )
    """
    context = dict(extra) if extra else {}
    logger.log(level, message, extra=context)
