"""Tests for status-code classification and StatusCodeError."""

import pytest

from fallible.core.errors import ErrorCategory, RetryableError
from fallible.execution.classify import is_retryable_http_error
from fallible.http.status import (
    NON_RETRYABLE_STATUS_CODES,
    RETRYABLE_STATUS_CODES,
    StatusCodeError,
    is_non_retryable_status_code,
    is_retryable_status_code,
)


class TestStatusCodeSets:
    """Tests for the fixed code sets."""

    @pytest.mark.parametrize("code", [503, 429, 502, 504, 408, 524])
    def test_retryable(self, code):
        assert is_retryable_status_code(code) is True
        assert is_non_retryable_status_code(code) is False

    @pytest.mark.parametrize(
        "code",
        [400, 401, 403, 404, 405, 406, 407, 409, 411, 412, 413, 414, 415, 416, 417,
         418, 421, 422, 428, 431, 451, 501, 505, 508, 510, 511],
    )
    def test_non_retryable(self, code):
        assert is_non_retryable_status_code(code) is True
        assert is_retryable_status_code(code) is False

    @pytest.mark.parametrize("code", [200, 201, 301, 500])
    def test_neither(self, code):
        """500 is deliberately in neither set: retried only under budget, never early-returned."""
        assert is_retryable_status_code(code) is False
        assert is_non_retryable_status_code(code) is False

    def test_sets_disjoint(self):
        assert RETRYABLE_STATUS_CODES.isdisjoint(NON_RETRYABLE_STATUS_CODES)


class TestStatusCodeError:
    """Tests for StatusCodeError."""

    def test_message(self):
        assert str(StatusCodeError(404)) == "status code encountered: 404"

    def test_fields(self):
        error = StatusCodeError(503, True, headers={"Retry-After": "1"}, body=b"busy")
        assert error.status_code == 503
        assert error.is_retryable_status_code is True
        assert error.headers == {"Retry-After": "1"}
        assert error.body == b"busy"
        assert error.category == ErrorCategory.HTTP
        assert error.context.http_status == 503

    def test_retryable_flag_mirrors_status(self):
        """The explicit capability drives the HTTP classifier."""
        assert isinstance(StatusCodeError(503), RetryableError)
        assert is_retryable_http_error(StatusCodeError(503, True)) is True
        assert is_retryable_http_error(StatusCodeError(500, False)) is False
