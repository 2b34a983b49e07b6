"""Cancellation and deadline scopes for fallible operations.

A :class:`Context` is the explicit token a retry loop hands to every attempt.
It answers three questions: *is the work still wanted* (``done()``), *why
not* (``err()``), and *how long is left* (``remaining()``). It also provides
the one blocking primitive the engine needs, a cancellable sleep
(``wait()``), which returns as soon as the context is cancelled or its
deadline passes.

Manifesto:
    Operations without a cancellation path are a reliability anti-pattern.
    - **Explicit over ambient:** the token is passed, never looked up
    - **Nested deadlines:** a child's deadline is the earlier of its own and
      its parent's, so an inner timeout can only shorten the outer one
    - **Cancel-either-wins:** cancelling a parent cancels every live child
    - **Scoped release:** children are context managers and are released
      (cancelled and detached) when the block exits, on every path

Architecture:
    ::

        background()
          │
          ├── with_cancel()      ─ cancelled explicitly or with parent
          ├── with_timeout(s)    ─ deadline = min(now + s, parent deadline)
          ├── with_deadline(t)   ─ deadline = min(t, parent deadline)
          ├── with_value(k, v)   ─ request-scoped values
          └── detach()           ─ values only, no cancellation

Examples:
    Per-attempt timeout:

    >>> from fallible.core.context import background
    >>> ctx = background()
    >>> with ctx.with_timeout(0.05) as attempt:
    ...     attempt.wait(10)
    True
    >>> type(attempt.err()).__name__
    'DeadlineExceeded'

    Cancellable sleep:

    >>> ctx = background().with_cancel()
    >>> ctx.wait(0.01)
    False

Tags:
    context, cancellation, deadline, timeout, fallible

Doc-Types:
    api-reference
"""

from __future__ import annotations

import signal
import sys
import threading
import time
import weakref
from collections.abc import Callable, Iterable
from typing import Any

from fallible.core.logging import get_logger

logger = get_logger(__name__)


class ContextError(Exception):
    """Base for the errors a done :class:`Context` reports."""


class Cancelled(ContextError):
    """The context was cancelled before the work completed."""

    def __init__(self, message: str = "context cancelled"):
        super().__init__(message)


class DeadlineExceeded(ContextError, TimeoutError):
    """The context's deadline passed before the work completed.

    Inherits from built-in TimeoutError for broad exception handling.
    """

    def __init__(self, message: str = "context deadline exceeded"):
        super().__init__(message)


def _earliest(a: float | None, b: float | None) -> float | None:
    if a is None:
        return b
    if b is None:
        return a
    return min(a, b)


class Context:
    """Cancellation scope with an optional deadline (monotonic clock).

    Contexts are safe to share between threads. Create roots with
    :func:`background` and derive children with the ``with_*`` methods.

    Attributes:
        deadline: Absolute deadline on the ``time.monotonic()`` clock, or None
    """

    def __init__(
        self,
        parent: Context | None = None,
        deadline: float | None = None,
        values: dict[Any, Any] | None = None,
    ):
        self._parent = parent
        self._deadline = _earliest(deadline, parent.deadline if parent is not None else None)
        self._values: dict[Any, Any] = dict(parent._values) if parent is not None else {}
        if values:
            self._values.update(values)
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._err: ContextError | None = None
        self._children: weakref.WeakSet[Context] = weakref.WeakSet()
        if parent is not None:
            parent._attach(self)

    # ── Derivation ───────────────────────────────────────────────────

    def with_cancel(self) -> Context:
        """Child that can be cancelled independently of this context."""
        return Context(self)

    def with_deadline(self, deadline: float) -> Context:
        """Child bounded by an absolute monotonic ``deadline``."""
        return Context(self, deadline=deadline)

    def with_timeout(self, seconds: float) -> Context:
        """Child bounded by ``seconds`` from now (and by this context's deadline)."""
        return Context(self, deadline=time.monotonic() + seconds)

    def with_value(self, key: Any, value: Any) -> Context:
        """Child carrying ``key -> value`` in addition to inherited values."""
        return Context(self, values={key: value})

    def detach(self) -> Context:
        """Root context with this context's values but none of its cancellation.

        Useful for work that must outlive the caller (cleanup, audit writes)
        while keeping request-scoped values such as correlation ids.
        """
        return Context(values=self._values)

    # ── Inspection ───────────────────────────────────────────────────

    @property
    def deadline(self) -> float | None:
        return self._deadline

    def remaining(self) -> float | None:
        """Seconds until the deadline (negative once expired), or None."""
        if self._deadline is None:
            return None
        return self._deadline - time.monotonic()

    def done(self) -> bool:
        """True once the context is cancelled or its deadline has passed."""
        if self._done.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self._finish(DeadlineExceeded())
            return True
        return False

    def err(self) -> ContextError | None:
        """Why the context is done, or None while it is still live."""
        if self.done():
            return self._err
        return None

    def check(self) -> None:
        """Raise the context's error if it is done."""
        err = self.err()
        if err is not None:
            raise err

    def value(self, key: Any, default: Any = None) -> Any:
        return self._values.get(key, default)

    # ── Blocking ─────────────────────────────────────────────────────

    def wait(self, seconds: float | None = None) -> bool:
        """Sleep for ``seconds`` unless the context finishes first.

        Returns:
            True if the context is done, False if the full duration elapsed.
            ``wait(None)`` blocks until the context is done.
        """
        end = None if seconds is None else time.monotonic() + max(seconds, 0.0)
        while True:
            if self.done():
                return True
            now = time.monotonic()
            if end is not None and now >= end:
                return False
            limit = _earliest(end, self._deadline)
            if self._done.wait(None if limit is None else limit - now):
                return True

    # ── Cancellation ─────────────────────────────────────────────────

    def cancel(self) -> None:
        """Cancel this context and every live child."""
        self._finish(Cancelled())

    def release(self) -> None:
        """Cancel (if still live) and detach from the parent. Idempotent."""
        if not self.done():
            self.cancel()
        if self._parent is not None:
            self._parent._detach(self)
            self._parent = None

    def _attach(self, child: Context) -> None:
        with self._lock:
            err = self._err
            if err is None:
                self._children.add(child)
        if err is not None:
            child._finish(err)

    def _detach(self, child: Context) -> None:
        with self._lock:
            self._children.discard(child)

    def _finish(self, err: ContextError) -> None:
        with self._lock:
            if self._err is not None:
                return
            self._err = err
            self._done.set()
            children = list(self._children)
            self._children.clear()
        for child in children:
            child._finish(err)

    def __enter__(self) -> Context:
        return self

    def __exit__(self, *args: Any) -> None:
        self.release()

    def __repr__(self) -> str:
        state = type(self._err).__name__ if self._err is not None else "live"
        return f"Context(state={state}, deadline={self._deadline})"


def background() -> Context:
    """New root context: no deadline, and never cancelled unless you cancel it."""
    return Context()


def shutdown_context(
    signals: Iterable[int] = (signal.SIGINT, signal.SIGTERM),
    exit_fn: Callable[[int], Any] = sys.exit,
) -> Context:
    """Root context cancelled by the first shutdown signal.

    A second signal calls ``exit_fn(1)`` to force termination. Must be
    called from the main thread (a restriction of :mod:`signal`).

    Example:
        >>> ctx = shutdown_context()  # doctest: +SKIP
        >>> retryer.do(ctx, fetch)    # Ctrl-C stops retrying promptly
    """
    ctx = Context()
    received: list[int] = []

    def _handler(signum: int, frame: Any) -> None:
        name = signal.Signals(signum).name
        if received:
            logger.warning("second_shutdown_signal", signal=name)
            exit_fn(1)
            return
        received.append(signum)
        logger.info("shutdown_signal_received", signal=name)
        ctx.cancel()

    for sig in signals:
        signal.signal(sig, _handler)
    return ctx


__all__ = [
    "Context",
    "ContextError",
    "Cancelled",
    "DeadlineExceeded",
    "background",
    "shutdown_context",
]
