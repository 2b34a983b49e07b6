"""HTTP status-code classification and the status-code error.

Two fixed sets drive the HTTP adapter's defaults: codes worth retrying
(overload, gateway and timeout responses) and codes that will never succeed
on retry (client errors and unsupported features), which trigger early
return.
"""

from __future__ import annotations

from collections.abc import Mapping
from http import HTTPStatus

from fallible.core.errors import ErrorCategory, ErrorContext, RetryableError

# 524 is Cloudflare's "origin did not respond within 100 seconds".
CLOUDFLARE_TIMEOUT = 524

RETRYABLE_STATUS_CODES: frozenset[int] = frozenset(
    {
        HTTPStatus.SERVICE_UNAVAILABLE,
        HTTPStatus.TOO_MANY_REQUESTS,
        HTTPStatus.BAD_GATEWAY,
        HTTPStatus.GATEWAY_TIMEOUT,
        HTTPStatus.REQUEST_TIMEOUT,
        CLOUDFLARE_TIMEOUT,
    }
)

NON_RETRYABLE_STATUS_CODES: frozenset[int] = frozenset(
    {
        HTTPStatus.BAD_REQUEST,
        HTTPStatus.UNAUTHORIZED,
        HTTPStatus.FORBIDDEN,
        HTTPStatus.NOT_FOUND,
        HTTPStatus.METHOD_NOT_ALLOWED,
        HTTPStatus.NOT_ACCEPTABLE,
        HTTPStatus.PROXY_AUTHENTICATION_REQUIRED,
        HTTPStatus.CONFLICT,
        HTTPStatus.LENGTH_REQUIRED,
        HTTPStatus.PRECONDITION_FAILED,
        HTTPStatus.REQUEST_ENTITY_TOO_LARGE,
        HTTPStatus.REQUEST_URI_TOO_LONG,
        HTTPStatus.UNSUPPORTED_MEDIA_TYPE,
        HTTPStatus.REQUESTED_RANGE_NOT_SATISFIABLE,
        HTTPStatus.EXPECTATION_FAILED,
        HTTPStatus.IM_A_TEAPOT,
        HTTPStatus.MISDIRECTED_REQUEST,
        HTTPStatus.UNPROCESSABLE_ENTITY,
        HTTPStatus.PRECONDITION_REQUIRED,
        HTTPStatus.REQUEST_HEADER_FIELDS_TOO_LARGE,
        HTTPStatus.UNAVAILABLE_FOR_LEGAL_REASONS,
        HTTPStatus.NOT_IMPLEMENTED,
        HTTPStatus.HTTP_VERSION_NOT_SUPPORTED,
        HTTPStatus.LOOP_DETECTED,
        HTTPStatus.NOT_EXTENDED,
        HTTPStatus.NETWORK_AUTHENTICATION_REQUIRED,
    }
)


def is_retryable_status_code(code: int) -> bool:
    """True if a response with ``code`` may succeed when requested again."""
    return code in RETRYABLE_STATUS_CODES


def is_non_retryable_status_code(code: int) -> bool:
    """True if a response with ``code`` will not succeed on retry."""
    return code in NON_RETRYABLE_STATUS_CODES


class StatusCodeError(RetryableError):
    """A response arrived with a status code the caller did not expect.

    Carries the headers and up to ``max_bytes`` of the body so the failure
    can still be inspected after retries are exhausted.

    Examples:
        >>> err = StatusCodeError(503, is_retryable_status_code=True)
        >>> str(err)
        'status code encountered: 503'
        >>> err.retryable
        True

    Attributes:
        status_code: The HTTP status code received
        is_retryable_status_code: Classification of ``status_code``
        headers: Response headers, if captured
        body: Captured body bytes, truncated at the adapter's byte cap
    """

    default_category = ErrorCategory.HTTP

    def __init__(
        self,
        status_code: int,
        is_retryable_status_code: bool = False,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
        context: ErrorContext | None = None,
    ):
        context = context or ErrorContext()
        context.http_status = status_code
        super().__init__(
            f"status code encountered: {status_code}",
            retryable=is_retryable_status_code,
            context=context,
        )
        self.status_code = status_code
        self.is_retryable_status_code = is_retryable_status_code
        self.headers = headers
        self.body = body


__all__ = [
    "CLOUDFLARE_TIMEOUT",
    "RETRYABLE_STATUS_CODES",
    "NON_RETRYABLE_STATUS_CODES",
    "is_retryable_status_code",
    "is_non_retryable_status_code",
    "StatusCodeError",
]
