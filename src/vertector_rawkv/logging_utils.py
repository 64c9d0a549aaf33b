"""
Structured logging utilities for the raw client.

Provides:
- Structured JSON logging
- Request ID and operation tracking through context variables
- Performance logging around raw requests
"""

import json
import logging
import time
from typing import Any
from contextvars import ContextVar

# Context variables for request/operation tracking
request_id_var: ContextVar[str] = ContextVar("request_id", default="")
operation_var: ContextVar[str] = ContextVar("operation", default="")

# Attributes every LogRecord has; anything else came in through ``extra``.
_RESERVED_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs logs in JSON format with consistent fields:
    - timestamp
    - level
    - message
    - request_id (if available)
    - operation (if available)
    - extra fields
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = request_id_var.get()
        if request_id:
            log_data["request_id"] = request_id

        operation = operation_var.get()
        if operation:
            log_data["operation"] = operation

        for key, value in vars(record).items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class PerformanceLogger:
    """
    Performance logging context manager.

    Logs operation duration and outcome and exposes the operation name to
    ``StructuredFormatter`` while it is active.

    Example:
        async with PerformanceLogger("raw_get", logger=logger, cf="default"):
            value = await delegate.execute(request, retry)
    """

    def __init__(
        self,
        operation: str,
        logger: logging.Logger,
        level: int = logging.DEBUG,
        **context: Any
    ):
        self.operation = operation
        self.logger = logger
        self.level = level
        self.context = context
        self.start_time = None
        self.duration_ms: float | None = None
        self._token = None

    async def __aenter__(self):
        self.start_time = time.perf_counter()
        self._token = operation_var.set(self.operation)

        self.logger.log(
            self.level,
            f"Starting operation: {self.operation}",
            extra={"event": "operation_start", **self.context}
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.duration_ms = (time.perf_counter() - self.start_time) * 1000

        if exc_type:
            self.logger.log(
                max(self.level, logging.WARNING),
                f"Operation failed: {self.operation}",
                extra={
                    "event": "operation_failed",
                    "duration_ms": round(self.duration_ms, 2),
                    "error_type": exc_type.__name__,
                    "error": str(exc_val),
                    **self.context
                }
            )
        else:
            self.logger.log(
                self.level,
                f"Operation completed: {self.operation}",
                extra={
                    "event": "operation_completed",
                    "duration_ms": round(self.duration_ms, 2),
                    **self.context
                }
            )

        operation_var.reset(self._token)


def setup_production_logging(level: str | int = "INFO", format: str = "json") -> logging.Handler:
    """
    Send all log output through a single stream handler on the root logger.

    Handlers already on the root logger are replaced.

    Args:
        level: Log level name or number
        format: "json" for StructuredFormatter output, "text" for plain lines

    Returns:
        The installed handler
    """
    if format.lower() == "json":
        formatter = StructuredFormatter()
    elif format.lower() == "text":
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    else:
        raise ValueError(f"Unknown log format: {format!r}")

    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper() if isinstance(level, str) else level)
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    return handler
