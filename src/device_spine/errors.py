"""
Structured error types for the device inventory store.

Every error raised by this package carries:

- **Category:** what kind of failure (config, database, not-found, ...)
- **Retryable:** whether the caller may reasonably try again
- **Context:** which operation, merge source and device keys were involved
- **Cause:** the chained driver exception, when one exists

Hierarchy::

    DeviceSpineError
    ├── ConfigError                  (CONFIG, never retryable)
    │   ├── UnknownDriverError
    │   └── UnsupportedCommandError
    ├── ValidationError              (VALIDATION, never retryable)
    │   └── InvalidProjectionError
    ├── TransientError               (retryable)
    │   └── DatabaseConnectionError
    │       └── ConnectivityExhaustedError
    ├── DatabaseError                (DATABASE)
    │   ├── SchemaMigrationError
    │   └── QueryError
    └── DeviceNotFoundError          (NOT_FOUND)

Usage:
    >>> try:
    ...     store.get_by_udid("UDID-9", "model")
    ... except DeviceNotFoundError:
    ...     ...  # expected outcome, not a transport failure

Merge writes deliberately let ``psycopg.Error`` propagate unwrapped; the
caller owns retry policy for in-flight merges.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    NETWORK = "NETWORK"
    DATABASE = "DATABASE"
    VALIDATION = "VALIDATION"
    CONFIG = "CONFIG"
    NOT_FOUND = "NOT_FOUND"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """Structured metadata attached to an error for logging."""

    operation: str | None = None
    source: str | None = None
    serial_number: str | None = None
    udid: str | None = None
    device_uuid: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["operation", "source", "serial_number", "udid", "device_uuid"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class DeviceSpineError(Exception):
    """Base exception for all device store errors.

    Subclasses set ``default_category`` and ``default_retryable`` so that
    most call sites only pass a message and, when wrapping, a ``cause``.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> DeviceSpineError:
        """
        Add context to this error (fluent API).

        Usage:
            raise QueryError("list failed", cause=exc).with_context(
                operation="list_devices",
            )
        """
        for key, value in kwargs.items():
            if key != "metadata" and hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS (never retryable)
# =============================================================================


class ConfigError(DeviceSpineError):
    """Configuration or caller-programming error."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class UnknownDriverError(ConfigError):
    """The requested store driver is not supported."""

    def __init__(self, driver: str, **kwargs: Any):
        super().__init__(f"unknown driver: {driver!r}", **kwargs)
        self.driver = driver


class UnsupportedCommandError(ConfigError):
    """The merge source tag is not one of the supported fact sources."""

    def __init__(self, source: str, **kwargs: Any):
        super().__init__(f"datastore command not supported {source!r}", **kwargs)
        self.source = source
        self.context.source = str(source)


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(DeviceSpineError):
    """Request failed validation before reaching the store."""

    default_category = ErrorCategory.VALIDATION
    default_retryable = False


class InvalidProjectionError(ValidationError):
    """A requested column is not part of the devices table."""

    def __init__(self, columns: list[str], **kwargs: Any):
        super().__init__(f"unknown device columns: {', '.join(columns)}", **kwargs)
        self.columns = columns


# =============================================================================
# TRANSIENT / CONNECTIVITY ERRORS
# =============================================================================


class TransientError(DeviceSpineError):
    """Temporary error that may succeed on retry."""

    default_category = ErrorCategory.NETWORK
    default_retryable = True


class DatabaseConnectionError(TransientError):
    """Database connection or pool error."""

    default_category = ErrorCategory.DATABASE


class ConnectivityExhaustedError(DatabaseConnectionError):
    """The store never became reachable within the bootstrap attempt budget."""

    default_retryable = False

    def __init__(self, message: str, *, attempts: int, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.attempts = attempts
        self.context.metadata["attempts"] = attempts


# =============================================================================
# DATABASE ERRORS
# =============================================================================


class DatabaseError(DeviceSpineError):
    """Database query or transaction error."""

    default_category = ErrorCategory.DATABASE
    default_retryable = False


class SchemaMigrationError(DatabaseError):
    """Schema ensure failed; indicates structural or permission problems."""

    pass


class QueryError(DatabaseError):
    """A read against the devices table failed."""

    pass


# =============================================================================
# NOT FOUND
# =============================================================================


class DeviceNotFoundError(DeviceSpineError):
    """A lookup matched zero rows."""

    default_category = ErrorCategory.NOT_FOUND
    default_retryable = False


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, DeviceSpineError):
        return error.retryable
    retryable_types = (
        ConnectionError,
        BrokenPipeError,
    )
    return isinstance(error, retryable_types)


def categorize_error(error: Exception) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, DeviceSpineError):
        return error.category
    if isinstance(error, (ConnectionError, OSError)):
        return ErrorCategory.NETWORK
    if isinstance(error, ValueError):
        return ErrorCategory.VALIDATION
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "DeviceSpineError",
    "ConfigError",
    "UnknownDriverError",
    "UnsupportedCommandError",
    "ValidationError",
    "InvalidProjectionError",
    "TransientError",
    "DatabaseConnectionError",
    "ConnectivityExhaustedError",
    "DatabaseError",
    "SchemaMigrationError",
    "QueryError",
    "DeviceNotFoundError",
    "is_retryable",
    "categorize_error",
]
