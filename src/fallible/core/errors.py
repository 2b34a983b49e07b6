"""
Structured error types for fallible.

Provides a small hierarchy of typed errors that carry explicit retry
semantics, so that retry decisions are made by reading a flag instead of
probing arbitrary objects for ``temporary()``/``timeout()`` style methods.

Every FallibleError carries:
- **Category:** What kind of error (network, http, decode, ...)
- **Retryable:** Whether the failed operation may succeed if attempted again
- **Retry-after:** Optional server or caller supplied wait, in seconds
- **Context:** Metadata such as the URL and method being attempted
- **Cause:** Chained underlying exception for root cause analysis

Manifesto:
    - **Explicit Retry Semantics:** Each error knows if it's retryable
    - **Capability by inheritance:** ``RetryableError`` is the one declared
      capability the classifiers honour; wrap foreign errors in it rather
      than duck-typing them
    - **Error Chaining:** Preserve original exceptions while adding context

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                       FallibleError                              │
        │  (category, retryable, retry_after, context, cause)             │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  RetryableError          BuildRequestError    DecodeError       │
        │  (flag set per error)    (never retryable)    (never retryable) │
        │       │                                           │              │
        │  TransientError                    UnsupportedContentTypeError  │
        │  StatusCodeError (http)            BodyTooLargeError            │
        └─────────────────────────────────────────────────────────────────┘

Examples:
    >>> error = TransientError("connection dropped", retry_after=2)
    >>> error.retryable
    True
    >>> is_retryable(BuildRequestError("bad url"))
    False

Tags:
    error-handling, exception-hierarchy, retry-logic, fallible

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from fallible.core.context import Cancelled


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and routing.

    Categories are grouped by their typical retry behavior:
    - **Usually transient:** NETWORK, TIMEOUT
    - **Depends on the status code:** HTTP
    - **Never retryable:** REQUEST, DECODE
    - **Internal errors:** INTERNAL, UNKNOWN

    Examples:
        >>> ErrorCategory.NETWORK.value
        'NETWORK'
    """

    NETWORK = "NETWORK"
    TIMEOUT = "TIMEOUT"
    HTTP = "HTTP"
    REQUEST = "REQUEST"
    DECODE = "DECODE"
    CANCELLED = "CANCELLED"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Only fields that are set are serialized by ``to_dict()``; anything that
    doesn't have a typed field goes in ``metadata``.

    Examples:
        >>> ctx = ErrorContext(url="https://api.example.com/items", http_status=503)
        >>> ctx.to_dict()
        {'url': 'https://api.example.com/items', 'http_status': 503}

    Attributes:
        operation: Name of the operation being retried
        method: HTTP method, if applicable
        url: URL that was being accessed
        http_status: HTTP status code if applicable
        attempt: Zero-based attempt number the error was produced on
        metadata: Additional key-value pairs
    """

    operation: str | None = None
    method: str | None = None
    url: str | None = None
    http_status: int | None = None
    attempt: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result: dict[str, Any] = {}
        for key in ["operation", "method", "url", "http_status", "attempt"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class FallibleError(Exception):
    """
    Base exception for all fallible errors.

    Subclasses set ``default_category`` and ``default_retryable`` so call
    sites only pass what differs from the norm.

    Examples:
        >>> error = FallibleError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.retryable
        False

        Chaining:

        >>> try:
        ...     raise ConnectionError("DNS lookup failed")
        ... except ConnectionError as e:
        ...     error = FallibleError("Network error", cause=e)
        >>> error.cause
        ConnectionError('DNS lookup failed')
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        retry_after: float | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
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

    def with_context(self, **kwargs: Any) -> FallibleError:
        """
        Add context to this error (fluent API).

        Usage:
            raise DecodeError("bad payload").with_context(url=str(request.url))
        """
        for key, value in kwargs.items():
            if key != "metadata" and hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
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


# =============================================================================
# RETRYABLE CAPABILITY
# =============================================================================


class RetryableError(FallibleError):
    """
    Error whose ``retryable`` flag is decided per instance.

    This is the capability the network classifier recognises: an error
    anywhere in an exception chain that subclasses RetryableError and has
    ``retryable=True`` makes the whole chain retryable. Foreign errors that
    are known to be transient should be wrapped in one explicitly.

    Examples:
        >>> RetryableError("flaky", retryable=True).retryable
        True
        >>> RetryableError("permanent").retryable
        False
    """

    default_category = ErrorCategory.NETWORK


class TransientError(RetryableError):
    """Temporary error that may succeed on retry."""

    default_retryable = True


# =============================================================================
# TERMINAL ERRORS (Never Retryable)
# =============================================================================


class BuildRequestError(FallibleError):
    """A request could not be constructed; retrying cannot help."""

    default_category = ErrorCategory.REQUEST


class DecodeError(FallibleError):
    """A response body could not be decoded into the requested type."""

    default_category = ErrorCategory.DECODE


class UnsupportedContentTypeError(DecodeError):
    """No decoder is registered for the response's Content-Type."""

    def __init__(self, content_type: str, message: str | None = None):
        super().__init__(message or f"unsupported content type: {content_type!r}")
        self.content_type = content_type


class BodyTooLargeError(DecodeError):
    """The response body exceeded the configured byte cap."""

    def __init__(self, max_bytes: int, message: str | None = None):
        super().__init__(message or f"response body exceeds {max_bytes} bytes")
        self.max_bytes = max_bytes


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: BaseException) -> bool:
    """Check if an error declares itself retryable."""
    if isinstance(error, FallibleError):
        return error.retryable
    return False


def get_retry_after(error: BaseException) -> float | None:
    """Get retry delay from error, if specified."""
    if isinstance(error, FallibleError):
        return error.retry_after
    return None


def categorize_error(error: BaseException) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, FallibleError):
        return error.category
    if isinstance(error, Cancelled):
        return ErrorCategory.CANCELLED
    if isinstance(error, TimeoutError):
        return ErrorCategory.TIMEOUT
    if isinstance(error, (ConnectionError, OSError)):
        return ErrorCategory.NETWORK
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "FallibleError",
    "RetryableError",
    "TransientError",
    "BuildRequestError",
    "DecodeError",
    "UnsupportedContentTypeError",
    "BodyTooLargeError",
    "is_retryable",
    "get_retry_after",
    "categorize_error",
]
