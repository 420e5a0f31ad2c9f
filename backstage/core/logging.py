"""Structured logging with correlation IDs.

Every record carries the correlation id of the request that produced it.
Extra fields whose name marks them as a credential (password, otp, token...)
are masked before they reach a handler.
"""

import json
import logging
import sys
import traceback
import uuid
from contextvars import ContextVar
from datetime import datetime
from typing import Any, Optional

correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

# Attributes every LogRecord has; anything else was passed through ``extra``
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName", "correlation_id"}

SENSITIVE_KEYS = ("password", "otp", "token", "secret", "authorization")
MASK = "***"


def get_correlation_id() -> str:
    """Get the current correlation ID, creating one if the context has none."""
    cid = correlation_id_var.get()
    if cid is None:
        cid = str(uuid.uuid4())
        correlation_id_var.set(cid)
    return cid


def set_correlation_id(correlation_id: str) -> None:
    correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    correlation_id_var.set(None)


def is_sensitive(key: str) -> bool:
    key = key.lower()
    return any(marker in key for marker in SENSITIVE_KEYS)


def mask_sensitive(fields: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``fields`` with credential-like values masked."""
    return {key: MASK if is_sensitive(key) else value for key, value in fields.items()}


def record_extras(record: logging.LogRecord) -> dict[str, Any]:
    """Collect the ``extra`` fields of a record, masked and JSON-safe."""
    extras = {}
    for key, value in record.__dict__.items():
        if key in _RECORD_ATTRS or key.startswith("_"):
            continue
        if is_sensitive(key):
            extras[key] = MASK
            continue
        try:
            json.dumps(value)
        except (TypeError, ValueError):
            value = str(value)
        extras[key] = value
    return extras


class StructuredFormatter(logging.Formatter):
    """Renders records as one JSON object per line."""

    def __init__(
        self,
        include_stack_trace: bool = True,
        include_extra_fields: bool = True,
    ):
        super().__init__()
        self.include_stack_trace = include_stack_trace
        self.include_extra_fields = include_extra_fields

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": getattr(record, "correlation_id", None) or get_correlation_id(),
            "source": {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            },
        }

        if record.exc_info and self.include_stack_trace:
            log_data["exception"] = self._exception_fields(record.exc_info)

        if self.include_extra_fields:
            extras = record_extras(record)
            if extras:
                log_data["extra"] = extras

        return json.dumps(log_data, default=str)

    @staticmethod
    def _exception_fields(exc_info) -> dict[str, Any]:
        exc_type, exc_value, exc_tb = exc_info
        return {
            "type": exc_type.__name__ if exc_type else None,
            "message": str(exc_value) if exc_value else None,
            "stack_trace": traceback.format_exception(exc_type, exc_value, exc_tb) if exc_tb else None,
        }


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter for local development."""

    def __init__(self):
        super().__init__(
            "%(asctime)s %(levelname)-7s %(name)s [%(correlation_id)s] %(message)s"
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = record_extras(record)
        if extras:
            line += " " + " ".join(f"{key}={value}" for key, value in extras.items())
        return line


class CorrelationIdFilter(logging.Filter):
    """Stamps the current correlation ID on every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id()
        return True


def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
    include_stack_trace: bool = True,
) -> None:
    """Configure the root logger with a single stdout handler.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON structured logging
        include_stack_trace: Include stack traces in error logs
    """
    log_level = getattr(logging, level.upper())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.addFilter(CorrelationIdFilter())
    if json_format:
        handler.setFormatter(StructuredFormatter(include_stack_trace=include_stack_trace))
    else:
        handler.setFormatter(ConsoleFormatter())
    root_logger.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)


def _log(logger: logging.Logger, level: int, message: str, extra: dict[str, Any], exc_info=None) -> None:
    fields = mask_sensitive(extra)
    fields["correlation_id"] = get_correlation_id()
    logger.log(level, message, exc_info=exc_info, extra=fields)


def log_error(
    logger: logging.Logger,
    message: str,
    exception: Optional[Exception] = None,
    **extra: Any,
) -> None:
    """Log an error with correlation ID and optional exception.

    Args:
        logger: Logger instance
        message: Error message
        exception: Optional exception whose traceback is attached
        **extra: Additional context fields
    """
    _log(logger, logging.ERROR, message, extra, exc_info=exception)


def log_warning(logger: logging.Logger, message: str, **extra: Any) -> None:
    _log(logger, logging.WARNING, message, extra)


def log_info(logger: logging.Logger, message: str, **extra: Any) -> None:
    _log(logger, logging.INFO, message, extra)
