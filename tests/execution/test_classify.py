"""Tests for transient error classification."""

import errno

import httpx
import pytest

from fallible.core.context import Cancelled, DeadlineExceeded
from fallible.core.errors import DecodeError, RetryableError, TransientError
from fallible.execution.classify import (
    is_retryable_http_error,
    is_retryable_network_error,
    iter_chain,
    retryable_http_reason,
    retryable_network_reason,
)

REQUEST = httpx.Request("GET", "https://api.example.com")


class TestRetryableNetworkReason:
    """Tests for retryable_network_reason."""

    @pytest.mark.parametrize(
        "code, reason",
        [
            (errno.ECONNRESET, "econnreset"),
            (errno.ECONNABORTED, "econnaborted"),
            (errno.ENOTCONN, "enotconn"),
            (errno.EWOULDBLOCK, "ewouldblock"),
            (errno.EINTR, "eintr"),
            (errno.EPIPE, "epipe"),
        ],
    )
    def test_transient_errno(self, code, reason):
        assert retryable_network_reason(OSError(code, "x")) == reason

    def test_etimedout_is_timeout(self):
        """ETIMEDOUT surfaces as the builtin TimeoutError, so it reports as a timeout."""
        assert retryable_network_reason(OSError(errno.ETIMEDOUT, "x")) == "timeout"

    def test_non_transient_errno(self):
        assert retryable_network_reason(OSError(errno.ENOENT, "missing")) is None

    @pytest.mark.parametrize(
        "error, reason",
        [
            (ConnectionResetError(), "econnreset"),
            (ConnectionAbortedError(), "econnaborted"),
            (BrokenPipeError(), "epipe"),
            (InterruptedError(), "eintr"),
        ],
    )
    def test_builtin_subclasses_without_errno(self, error, reason):
        assert retryable_network_reason(error) == reason

    def test_explicit_capability(self):
        assert retryable_network_reason(TransientError("flaky")) == "retryable"
        assert retryable_network_reason(RetryableError("permanent")) is None

    @pytest.mark.parametrize(
        "error",
        [
            TimeoutError(),
            DeadlineExceeded(),
            httpx.ReadTimeout("slow", request=REQUEST),
            httpx.ConnectTimeout("slow", request=REQUEST),
        ],
    )
    def test_timeouts(self, error):
        assert retryable_network_reason(error) == "timeout"

    def test_httpx_network_error(self):
        assert retryable_network_reason(httpx.ConnectError("refused", request=REQUEST)) == "network"

    def test_cancelled_never_retryable(self):
        assert retryable_network_reason(Cancelled()) is None
        wrapped = TransientError("wrapper", cause=Cancelled())
        assert retryable_network_reason(wrapped) is None

    def test_unrelated_errors(self):
        assert retryable_network_reason(ValueError("x")) is None
        assert retryable_network_reason(DecodeError("x")) is None


class TestChainWalking:
    """Tests for classification through exception chains."""

    def test_explicit_cause(self):
        error = DecodeError("outer", cause=ConnectionResetError())
        assert retryable_network_reason(error) == "econnreset"

    def test_implicit_context(self):
        try:
            try:
                raise BrokenPipeError()
            except BrokenPipeError:
                raise ValueError("while handling")
        except ValueError as e:
            error = e
        assert retryable_network_reason(error) == "epipe"

    def test_suppressed_context_ignored(self):
        try:
            try:
                raise BrokenPipeError()
            except BrokenPipeError:
                raise ValueError("clean") from None
        except ValueError as e:
            error = e
        assert retryable_network_reason(error) is None

    def test_retryable_wins_over_timeout(self):
        error = TransientError("flaky", cause=TimeoutError())
        assert retryable_network_reason(error) == "retryable"

    def test_cycle_terminates(self):
        a, b = ValueError("a"), ValueError("b")
        a.__cause__, b.__cause__ = b, a
        assert list(iter_chain(a)) == [a, b]


class TestRetryableHttpReason:
    """Tests for HTTP-specific additions."""

    def test_includes_network_reasons(self):
        assert retryable_http_reason(ConnectionResetError()) == "econnreset"

    def test_goaway(self):
        error = httpx.RemoteProtocolError("server sent GOAWAY frame", request=REQUEST)
        assert retryable_http_reason(error) == "goaway"
        assert retryable_network_reason(error) is None

    def test_server_closed_idle(self):
        error = RuntimeError("http: server closed idle connection")
        assert retryable_http_reason(error) == "server_close_idle_connection"

    def test_remote_protocol(self):
        error = httpx.RemoteProtocolError("peer closed connection", request=REQUEST)
        assert retryable_http_reason(error) == "remote_protocol"

    def test_boolean_forms(self):
        assert is_retryable_http_error(httpx.RemoteProtocolError("x", request=REQUEST)) is True
        assert is_retryable_network_error(httpx.RemoteProtocolError("x", request=REQUEST)) is False
        assert is_retryable_network_error(ConnectionResetError()) is True
        assert is_retryable_http_error(ValueError()) is False
