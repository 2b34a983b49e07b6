"""Transient error classification.

Decides whether a failed attempt is worth repeating by inspecting the
exception and everything chained to it (``raise ... from ...`` and implicit
``__context__``). Each predicate also reports a short *reason* string that
callers can attach to logs and metrics.

Only declared capabilities are honoured: an error is retryable because it
*is* a :class:`~fallible.core.errors.RetryableError` with its flag set, a
timeout, a known transient OS condition, or a known transient httpx
transport failure. Arbitrary objects are never inspected for ad-hoc methods.

Reasons::

    retryable                     RetryableError(retryable=True) in the chain
    timeout                       TimeoutError / DeadlineExceeded / httpx.TimeoutException
    econnreset ... epipe          OSError with a transient errno
    network                       httpx.NetworkError (connect/read/write/close)
    goaway                        HTTP/2 GOAWAY from the server       (HTTP only)
    server_close_idle_connection  server closed an idle keep-alive    (HTTP only)
    remote_protocol               connection dropped mid-response     (HTTP only)

Example:
    >>> import errno
    >>> retryable_network_reason(ConnectionResetError(errno.ECONNRESET, "reset"))
    'econnreset'
    >>> is_retryable_network_error(ValueError("bad input"))
    False
"""

from __future__ import annotations

import errno
from collections.abc import Iterator

import httpx

from fallible.core.context import Cancelled
from fallible.core.errors import RetryableError

# Ordered: EWOULDBLOCK and EAGAIN share a value on most platforms.
_TRANSIENT_ERRNOS: tuple[tuple[int, str], ...] = (
    (errno.ECONNRESET, "econnreset"),
    (errno.ECONNABORTED, "econnaborted"),
    (errno.ENOTCONN, "enotconn"),
    (errno.EWOULDBLOCK, "ewouldblock"),
    (errno.EAGAIN, "eagain"),
    (errno.ETIMEDOUT, "etimedout"),
    (errno.EINTR, "eintr"),
    (errno.EPIPE, "epipe"),
)

# Builtin OSError subclasses raised without an errno (e.g. by libraries).
_TRANSIENT_OSERROR_TYPES: tuple[tuple[type[OSError], str], ...] = (
    (ConnectionResetError, "econnreset"),
    (ConnectionAbortedError, "econnaborted"),
    (BlockingIOError, "eagain"),
    (InterruptedError, "eintr"),
    (BrokenPipeError, "epipe"),
)


def iter_chain(err: BaseException) -> Iterator[BaseException]:
    """Yield ``err`` and every exception chained beneath it, outermost first."""
    seen: set[int] = set()
    current: BaseException | None = err
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        if current.__cause__ is not None:
            current = current.__cause__
        elif not current.__suppress_context__:
            current = current.__context__
        else:
            current = None


def _errno_reason(err: BaseException) -> str | None:
    if not isinstance(err, OSError):
        return None
    if err.errno is not None:
        for code, reason in _TRANSIENT_ERRNOS:
            if err.errno == code:
                return reason
        return None
    for exc_type, reason in _TRANSIENT_OSERROR_TYPES:
        if isinstance(err, exc_type):
            return reason
    return None


def retryable_network_reason(err: BaseException) -> str | None:
    """Reason ``err`` is a transient network failure, or None if it is not.

    Checks run in priority order across the whole chain, so an explicit
    ``RetryableError`` anywhere wins over a timeout further down.
    """
    chain = list(iter_chain(err))
    if any(isinstance(e, Cancelled) for e in chain):
        return None
    if any(isinstance(e, RetryableError) and e.retryable for e in chain):
        return "retryable"
    if any(isinstance(e, (TimeoutError, httpx.TimeoutException)) for e in chain):
        return "timeout"
    for e in chain:
        reason = _errno_reason(e)
        if reason is not None:
            return reason
    if any(isinstance(e, httpx.NetworkError) for e in chain):
        return "network"
    return None


def retryable_http_reason(err: BaseException) -> str | None:
    """Like :func:`retryable_network_reason`, plus dropped HTTP connections."""
    reason = retryable_network_reason(err)
    if reason is not None:
        return reason
    chain = list(iter_chain(err))
    if any(isinstance(e, Cancelled) for e in chain):
        return None
    for e in chain:
        message = str(e)
        if "GOAWAY" in message:
            return "goaway"
        if "server closed idle connection" in message:
            return "server_close_idle_connection"
    if any(isinstance(e, httpx.RemoteProtocolError) for e in chain):
        return "remote_protocol"
    return None


def is_retryable_network_error(err: BaseException) -> bool:
    return retryable_network_reason(err) is not None


def is_retryable_http_error(err: BaseException) -> bool:
    return retryable_http_reason(err) is not None


__all__ = [
    "iter_chain",
    "retryable_network_reason",
    "retryable_http_reason",
    "is_retryable_network_error",
    "is_retryable_http_error",
]
