"""
Structured error types for SyncGuard.

Typed errors carry a category, a retry flag and structured context so that
callers (the sync worker, the CLI) can log and route them without parsing
messages.

What is NOT an error here:
    - A remote system being unavailable. The circuit breaker reports that
      through ``is_available() == False``; callers poll, they do not catch.
    - Lock contention. ``DistributedMutex.acquire()`` returns ``False``.
    - Partially populated persisted rows. ``Job.from_row()`` fills defaults.

Architecture:
    ::

        SyncGuardError (category, retryable, retry_after, context, cause)
        ├── TransientError        (NETWORK, retryable)
        ├── ValidationError       (VALIDATION)
        │   └── JobDecodeError
        ├── ConfigError           (CONFIG)
        └── DatabaseError         (DATABASE)

Examples:
    >>> error = ValidationError("module is required", field="module")
    >>> error.retryable
    False
    >>> error.with_context(correlation_id="abc").context.correlation_id
    'abc'
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    NETWORK = "NETWORK"           # SMTP, Redis, remote endpoints
    DATABASE = "DATABASE"         # Queue/state storage
    VALIDATION = "VALIDATION"     # Bad arguments, undecodable rows
    CONFIG = "CONFIG"             # Unknown backends, invalid settings
    INTERNAL = "INTERNAL"         # Bugs, unexpected state


@dataclass
class ErrorContext:
    """Structured metadata attached to an error.

    Attributes:
        module: Integration module the error relates to
        entity_type: Entity type of the job involved
        job_id: Queue job identifier
        correlation_id: Correlation id used for log tracing
        lock_name: Named lock involved, if any
        metadata: Additional key-value pairs
    """

    module: str | None = None
    entity_type: str | None = None
    job_id: int | None = None
    correlation_id: str | None = None
    lock_name: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["module", "entity_type", "job_id", "correlation_id", "lock_name"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class SyncGuardError(Exception):
    """Base exception for all SyncGuard errors.

    Subclasses set ``default_category`` and ``default_retryable``; callers
    may override both per instance.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        retry_after: int | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.retry_after = retry_after
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> SyncGuardError:
        """Add context to this error (fluent API).

        Usage:
            raise ValidationError("Unknown action").with_context(
                module="crm", entity_type="contact"
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
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
        if self.retry_after is not None:
            result["retry_after"] = self.retry_after
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


class TransientError(SyncGuardError):
    """Temporary error that may succeed on retry (SMTP hiccup, Redis blip)."""

    default_category = ErrorCategory.NETWORK
    default_retryable = True


class ValidationError(SyncGuardError):
    """
    Invalid input.

    Never retryable - the caller must fix the arguments.
    """

    default_category = ErrorCategory.VALIDATION
    default_retryable = False

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        if self.value is not None:
            result["value"] = repr(self.value)
        return result


class JobDecodeError(ValidationError):
    """A persisted queue row that cannot be turned into a Job at all."""


class ConfigError(SyncGuardError):
    """Configuration error (unknown backend, invalid setting)."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class DatabaseError(SyncGuardError):
    """Storage failure in the queue or state tables."""

    default_category = ErrorCategory.DATABASE
    default_retryable = False


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, SyncGuardError):
        return error.retryable
    return isinstance(error, (ConnectionError, TimeoutError))


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "SyncGuardError",
    "TransientError",
    "ValidationError",
    "JobDecodeError",
    "ConfigError",
    "DatabaseError",
    "is_retryable",
]
