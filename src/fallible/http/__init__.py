"""Fallible HTTP -- retrying httpx round trips.

::

    status.py    retryable / non-retryable status codes, StatusCodeError
    headers.py   Retry-After parsing
    body.py      bounded body capture and draining
    decode.py    JSON / XML decoding by Content-Type (pydantic validation)
    backoff.py   Retry-After aware backoff
    retryer.py   HttpRetryer (do_response / do)
"""

from fallible.http.backoff import RetryAfterBackoff, retry_after_hint
from fallible.http.body import capture_body, drain, read_limited
from fallible.http.decode import decode_bytes, decode_response, detect_format
from fallible.http.headers import parse_retry_after
from fallible.http.retryer import (
    HttpRetryer,
    default_client,
    default_early_return,
    default_is_retryable,
    default_is_retryable_status_code,
    is_terminal_error,
)
from fallible.http.status import (
    NON_RETRYABLE_STATUS_CODES,
    RETRYABLE_STATUS_CODES,
    StatusCodeError,
    is_non_retryable_status_code,
    is_retryable_status_code,
)

__all__ = [
    "RetryAfterBackoff",
    "retry_after_hint",
    "capture_body",
    "drain",
    "read_limited",
    "decode_bytes",
    "decode_response",
    "detect_format",
    "parse_retry_after",
    "HttpRetryer",
    "default_client",
    "default_early_return",
    "default_is_retryable",
    "default_is_retryable_status_code",
    "is_terminal_error",
    "NON_RETRYABLE_STATUS_CODES",
    "RETRYABLE_STATUS_CODES",
    "StatusCodeError",
    "is_non_retryable_status_code",
    "is_retryable_status_code",
]
