"""Structured logging helpers.

Every request handled by an API function runs inside a ``correlation_context``;
records emitted through a ``StructuredLogger`` while it is active carry the
request's correlation ID alongside their keyword fields. ``log_timing`` wraps
store round trips and warns when one exceeds the configured threshold.

Listing payloads carry agent names, emails and phone numbers. Anything built
from request data or store errors goes through ``mask_sensitive_data`` before
it is logged.
"""

import logging
import re
import time
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, Iterator, Optional

from ulid import ULID

from src.utils.logging_config import LoggingConfig, get_logger


_correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

_EMAIL_PATTERN = re.compile(r"[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}", re.IGNORECASE)
_PHONE_PATTERN = re.compile(r"\b\+?\d[\d\s().-]{7,}\b")
_SECRET_PATTERN = re.compile(r"(?i)(api[_-]?key|token|secret|password)[\s:=]+([A-Za-z0-9_-]{8,})")


def generate_correlation_id() -> str:
    return f"req_{str(ULID()).lower()}"


def get_correlation_id() -> Optional[str]:
    return _correlation_id_var.get()


@contextmanager
def correlation_context(correlation_id: Optional[str] = None) -> Iterator[str]:
    """Bind a correlation ID (generated when not given) for the duration of the block."""
    token = _correlation_id_var.set(correlation_id or generate_correlation_id())
    try:
        yield _correlation_id_var.get()
    finally:
        _correlation_id_var.reset(token)


def mask_sensitive_data(text: str) -> str:
    """Redact emails, phone numbers and credential values."""
    if not text or not LoggingConfig.LOG_MASK_SENSITIVE:
        return text

    text = _EMAIL_PATTERN.sub("[REDACTED_EMAIL]", text)
    text = _PHONE_PATTERN.sub("[REDACTED_PHONE]", text)
    return _SECRET_PATTERN.sub(r"\1=[REDACTED]", text)


class StructuredLogger:
    """Wraps a stdlib logger; keyword arguments become fields on the record."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def _log(self, level: int, message: str, exc_info: bool = False, **fields: Any) -> None:
        if not self.logger.isEnabledFor(level):
            return
        correlation_id = get_correlation_id()
        if correlation_id:
            fields["correlation_id"] = correlation_id
        self.logger.log(level, message, extra=fields, exc_info=exc_info)

    def debug(self, message: str, **fields: Any) -> None:
        self._log(logging.DEBUG, message, **fields)

    def info(self, message: str, **fields: Any) -> None:
        self._log(logging.INFO, message, **fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._log(logging.WARNING, message, **fields)

    def error(self, message: str, exc_info: bool = False, **fields: Any) -> None:
        self._log(logging.ERROR, message, exc_info=exc_info, **fields)

    def exception(self, message: str, **fields: Any) -> None:
        self._log(logging.ERROR, message, exc_info=True, **fields)


def get_structured_logger(name: str) -> StructuredLogger:
    return StructuredLogger(get_logger(name))


@contextmanager
def log_timing(
    operation: str,
    logger: Optional[StructuredLogger] = None,
    **context: Any,
) -> Iterator[Dict[str, Any]]:
    """Time a block and log its duration.

    Yields a dict; fields the block adds to it (result counts and the like)
    are included in the completion record.
    """
    logger = logger or get_structured_logger(__name__)
    outcome: Dict[str, Any] = {}
    started = time.perf_counter()
    try:
        yield outcome
    finally:
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        fields = {**context, **outcome, "operation": operation, "processing_time_ms": elapsed_ms}
        logger.info(f"Completed {operation}", **fields)
        if elapsed_ms > LoggingConfig.LOG_SLOW_OPERATION_THRESHOLD_MS:
            logger.warning(
                f"Slow operation: {operation}",
                threshold_ms=LoggingConfig.LOG_SLOW_OPERATION_THRESHOLD_MS,
                **fields,
            )


def setup_logging() -> logging.Logger:
    """Configure the root logger and return the package logger."""
    LoggingConfig.setup_logging()
    return get_logger("src")
