"""
Exceptions raised by the raw client and its execution delegates.

Every error carries a category so callers can tell transient cluster errors
from definitive rejections and transport failures. The client itself never
translates delegate errors; it only raises validation errors of its own.
"""

import logging
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class ErrorCategory(str, Enum):
    """Broad classes of raw client failures."""
    VALIDATION = "validation"
    TRANSIENT = "transient"
    REJECTED = "rejected"
    TRANSPORT = "transport"
    CONFIGURATION = "configuration"


class RawKVError(Exception):
    """
    Base exception for raw client errors.

    Wraps underlying transport or cluster exceptions with additional context
    and ensures proper logging.
    """

    category: ErrorCategory = ErrorCategory.REJECTED
    retryable: bool = False

    def __init__(self, message: str, original_error: Exception | None = None):
        """
        Initialize raw client error.

        Args:
            message: Human-readable error message
            original_error: Original exception that caused this error
        """
        super().__init__(message)
        self.original_error = original_error
        self.message = message

        if original_error:
            logger.error(
                f"{self.__class__.__name__}: {message}",
                exc_info=original_error,
                extra={
                    "error_type": type(original_error).__name__,
                    "error_message": str(original_error)
                }
            )
        else:
            logger.debug(f"{self.__class__.__name__}: {message}")

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message} (caused by {type(self.original_error).__name__}: {self.original_error})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, original_error={self.original_error!r})"


class RawKVValidationError(RawKVError):
    """
    Raised when request arguments are rejected before dispatch.

    Validation errors are caller programming errors and are never retried.
    """

    category = ErrorCategory.VALIDATION

    def __init__(self, message: str, field: str | None = None, value: Any = None, original_error: Exception | None = None):
        self.field = field
        self.value = value
        if field:
            message = f"Validation error for '{field}': {message}"
        super().__init__(message, original_error)


class MaxScanLimitExceeded(RawKVValidationError):
    """Raised when a scan or batch scan asks for more pairs than the cap."""

    def __init__(self, limit: int, max_limit: int):
        self.limit = limit
        self.max_limit = max_limit
        RawKVError.__init__(self, f"limit {limit} exceeds max scan limit {max_limit}")
        self.field = "limit"
        self.value = limit

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MaxScanLimitExceeded):
            return NotImplemented
        return (self.limit, self.max_limit) == (other.limit, other.max_limit)

    def __hash__(self) -> int:
        return hash((MaxScanLimitExceeded, self.limit, self.max_limit))

    def __repr__(self) -> str:
        return f"MaxScanLimitExceeded(limit={self.limit}, max_limit={self.max_limit})"


class RawKVRegionError(RawKVError):
    """
    Raised when a region rejects a request it cannot serve right now.

    Covers stale region epochs, leader changes and regions that are not yet
    available. The execution layer retries these with the region backoff.
    """

    category = ErrorCategory.TRANSIENT
    retryable = True

    def __init__(self, message: str = "Region unavailable", region_id: int | None = None, original_error: Exception | None = None):
        self.region_id = region_id
        if region_id is not None:
            message = f"{message} (region={region_id})"
        super().__init__(message, original_error)


class RawKVServerBusyError(RawKVError):
    """Raised when a store node sheds load. Transient."""

    category = ErrorCategory.TRANSIENT
    retryable = True

    def __init__(self, message: str = "Server is busy", original_error: Exception | None = None):
        super().__init__(message, original_error)


class RawKVRequestError(RawKVError):
    """
    Raised when the cluster definitively rejects a request.

    Retrying the same request will fail the same way.
    """

    def __init__(self, message: str, code: str | None = None, original_error: Exception | None = None):
        self.code = code
        if code:
            message = f"{message} [code={code}]"
        super().__init__(message, original_error)


class RawKVConnectionError(RawKVError):
    """
    Raised when no endpoint is reachable or a connection drops.

    This usually requires checking:
    - Network connectivity
    - Cluster status
    - Endpoint configuration
    """

    category = ErrorCategory.TRANSPORT

    def __init__(self, message: str = "Failed to connect to cluster", original_error: Exception | None = None):
        super().__init__(message, original_error)


class RawKVTimeoutError(RawKVError):
    """Raised when an operation does not complete in time."""

    category = ErrorCategory.TRANSPORT

    def __init__(
        self,
        message: str = "Operation timed out",
        original_error: Exception | None = None,
        timeout_seconds: float | None = None,
        operation_type: str | None = None
    ):
        self.timeout_seconds = timeout_seconds
        self.operation_type = operation_type

        details = []
        if operation_type:
            details.append(f"operation={operation_type}")
        if timeout_seconds:
            details.append(f"timeout={timeout_seconds}s")

        if details:
            message = f"{message} ({', '.join(details)})"

        super().__init__(message, original_error)


class RawKVConfigurationError(RawKVError):
    """Raised when the client is misconfigured."""

    category = ErrorCategory.CONFIGURATION

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message, original_error)
