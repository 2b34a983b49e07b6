"""Bounded response body capture and draining.

Streaming responses must be read (up to a cap) and closed on every exit
path, otherwise the underlying connection cannot go back to the pool.
"""

from __future__ import annotations

import httpx


def _read_into(buf: bytearray, response: httpx.Response, max_bytes: int) -> None:
    if response.is_stream_consumed or response.is_closed:
        try:
            buf += response.content[:max_bytes]
        except httpx.ResponseNotRead:
            pass
        return
    for chunk in response.iter_bytes():
        buf += chunk
        if len(buf) >= max_bytes:
            break


def read_limited(response: httpx.Response, max_bytes: int) -> bytes:
    """Read at most ``max_bytes`` of the body; the rest stays unread.

    Works for both streamed and already-loaded responses.
    """
    if max_bytes <= 0:
        return b""
    buf = bytearray()
    _read_into(buf, response, max_bytes)
    return bytes(buf[:max_bytes])


def capture_body(response: httpx.Response, max_bytes: int) -> tuple[bytes, httpx.HTTPError | None]:
    """Like :func:`read_limited`, but a body that breaks mid-stream is not fatal.

    Returns the bytes read before the failure together with the error.
    """
    if max_bytes <= 0:
        return b"", None
    buf = bytearray()
    try:
        _read_into(buf, response, max_bytes)
    except httpx.HTTPError as e:
        return bytes(buf[:max_bytes]), e
    return bytes(buf[:max_bytes]), None


def drain(response: httpx.Response, max_bytes: int) -> None:
    """Discard up to ``max_bytes`` of the remaining body, then close it."""
    try:
        if not response.is_stream_consumed and not response.is_closed:
            read = 0
            for chunk in response.iter_raw():
                read += len(chunk)
                if read >= max_bytes:
                    break
    except (httpx.HTTPError, httpx.StreamError):
        # Best effort: the connection is discarded instead of reused.
        pass
    finally:
        response.close()


__all__ = ["read_limited", "capture_body", "drain"]
