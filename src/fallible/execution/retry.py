"""Generic retry engine for fallible operations.

A :class:`Retryer` repeatedly calls an operation ``fn(ctx) -> Result`` until
it returns ``Ok``, the failure is classified as terminal, or the attempt
budget runs out. The policy is an immutable value: every ``with_*`` method
returns a new ``Retryer``, so a shared base policy can be specialised per
call site without affecting anyone else.

Per attempt::

    ┌──────────────────────────────────────────────────────────────────┐
    │ attempt ctx = ctx.with_timeout(timeout)   (or ctx if timeout=0)  │
    │ result = fn(attempt ctx)                  (released afterwards)  │
    │   Ok ───────────────────────────────────────────────▶ return Ok  │
    │   Err(e):                                                        │
    │     retryable = is_retryable(ctx, e)                             │
    │     not retryable and early_return(ctx, e) ──────────▶ return e  │
    │     ctx done (caller cancelled) ─────────────────────▶ return e  │
    │     decision = budget accounting by mode                         │
    │     remaining == 0 ──────────────────────────────────▶ return e  │
    │     backoff(ctx, attempt, e); attempt += 1; loop                 │
    └──────────────────────────────────────────────────────────────────┘

Budget accounting by :class:`~fallible.core.enums.MaxAttemptsMode`:

    ===================  ==================  ======================
    mode                 retryable failure   non-retryable failure
    ===================  ==================  ======================
    NON_RETRYABLE_RESET  reset to max        decrement
    NON_RETRYABLE        free retry          decrement
    TOTAL                decrement           decrement
    UNLIMITED            free retry          free retry
    ===================  ==================  ======================

Example:
    >>> from fallible.core.context import background
    >>> from fallible.core.enums import MaxAttemptsMode
    >>> from fallible.core.result import Err, Ok
    >>> calls = []
    >>> def flaky(ctx):
    ...     calls.append(1)
    ...     return Ok("done") if len(calls) == 3 else Err(ConnectionResetError())
    >>> retryer = (
    ...     Retryer()
    ...     .with_max_attempts(MaxAttemptsMode.TOTAL, 3)
    ...     .with_backoff(None)
    ... )
    >>> retryer.do(background(), flaky)
    Ok('done')
"""

from __future__ import annotations

import functools
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Generic, TypeVar

from fallible.core.context import Context
from fallible.core.enums import MaxAttemptsMode
from fallible.core.result import Err, Ok, Result
from fallible.core.settings import RetrySettings
from fallible.execution.backoff import ConstantBackoff, NoBackoff

T = TypeVar("T")
E = TypeVar("E")

MAX_ATTEMPTS_LIMIT = 255

BackoffFn = Callable[[Context, int, Any], None]
IsRetryableFn = Callable[[Context, Any], bool]
EarlyReturnFn = Callable[[Context, Any], bool]
RetryableFn = Callable[[Context], Result[T, E]]


def never_retryable(ctx: Context, err: Any) -> bool:
    """Default classifier: nothing is retryable until told otherwise."""
    return False


class _Decision(Enum):
    RETRY = "retry"
    CHECK_BUDGET = "check_budget"


@dataclass(frozen=True)
class Retryer(Generic[T, E]):
    """Retry policy for operations returning ``Result[T, E]``.

    Defaults: ``NON_RETRYABLE_RESET`` with 5 attempts, no per-attempt
    timeout, nothing retryable, 200ms constant backoff, no early return.

    Attributes:
        is_retryable: ``(ctx, err) -> bool`` classifier
        early_return: Optional ``(ctx, err) -> bool``; consulted only for
            errors that are not retryable, and ends the loop at once
        max_attempts_mode: How failures consume the attempt budget
        max_attempts: Budget size (0..255); its meaning depends on the mode
        backoff: ``(ctx, attempt, err)`` wait between attempts
        timeout: Per-attempt timeout in seconds; 0 disables it
    """

    is_retryable: IsRetryableFn = never_retryable
    early_return: EarlyReturnFn | None = None
    max_attempts_mode: MaxAttemptsMode = MaxAttemptsMode.NON_RETRYABLE_RESET
    max_attempts: int = 5
    backoff: BackoffFn = field(default_factory=ConstantBackoff)
    timeout: float = 0.0

    def __post_init__(self) -> None:
        if not 0 <= self.max_attempts <= MAX_ATTEMPTS_LIMIT:
            raise ValueError(
                f"max_attempts must be between 0 and {MAX_ATTEMPTS_LIMIT}, got {self.max_attempts}"
            )
        if self.timeout < 0:
            raise ValueError(f"timeout must be >= 0, got {self.timeout}")

    # ── Builders ─────────────────────────────────────────────────────

    def with_is_retryable(self, fn: IsRetryableFn | None) -> Retryer[T, E]:
        """Set the classifier; ``None`` restores "never retryable"."""
        return replace(self, is_retryable=fn or never_retryable)

    def with_early_return(self, fn: EarlyReturnFn | None) -> Retryer[T, E]:
        """Set the early-return predicate.

        NOTE: a retryable classification always wins; early return is only
        asked about errors ``is_retryable`` rejected.
        """
        return replace(self, early_return=fn)

    def with_max_attempts(self, mode: MaxAttemptsMode, max_attempts: int) -> Retryer[T, E]:
        return replace(self, max_attempts_mode=MaxAttemptsMode(mode), max_attempts=max_attempts)

    def with_backoff(self, fn: BackoffFn | None) -> Retryer[T, E]:
        """Set the backoff; ``None`` retries immediately."""
        return replace(self, backoff=fn or NoBackoff())

    def with_timeout(self, seconds: float) -> Retryer[T, E]:
        """Per-attempt timeout, not a budget for the whole ``do`` call."""
        return replace(self, timeout=seconds)

    @classmethod
    def from_settings(cls, settings: RetrySettings) -> Retryer[Any, Any]:
        return cls(
            max_attempts_mode=settings.max_attempts_mode,
            max_attempts=settings.max_attempts,
            backoff=ConstantBackoff(settings.backoff_delay),
            timeout=settings.attempt_timeout,
        )

    # ── Execution ────────────────────────────────────────────────────

    def do(self, ctx: Context, fn: RetryableFn[T, E]) -> Result[T, E]:
        """Run ``fn`` until it succeeds or the policy gives up.

        Returns:
            The first ``Ok``, or the ``Err`` of the last attempt made.
        """
        attempt = 0
        remaining = self.max_attempts
        while True:
            result = self._attempt(ctx, fn)
            if isinstance(result, Ok):
                return result

            err = result.error
            retryable = self.is_retryable(ctx, err)
            if not retryable and self.early_return is not None and self.early_return(ctx, err):
                return result
            if ctx.done():
                return result

            decision, remaining = self._account(retryable, remaining)
            if decision is _Decision.CHECK_BUDGET and remaining == 0:
                return result

            self.backoff(ctx, attempt, err)
            attempt += 1

    def _attempt(self, ctx: Context, fn: RetryableFn[T, E]) -> Result[T, E]:
        if self.timeout <= 0:
            return fn(ctx)
        with ctx.with_timeout(self.timeout) as attempt_ctx:
            return fn(attempt_ctx)

    def _account(self, retryable: bool, remaining: int) -> tuple[_Decision, int]:
        match self.max_attempts_mode:
            case MaxAttemptsMode.UNLIMITED:
                return _Decision.RETRY, remaining
            case MaxAttemptsMode.NON_RETRYABLE_RESET:
                if retryable:
                    return _Decision.RETRY, self.max_attempts
                return _Decision.CHECK_BUDGET, max(remaining - 1, 0)
            case MaxAttemptsMode.NON_RETRYABLE:
                if retryable:
                    return _Decision.RETRY, remaining
                return _Decision.CHECK_BUDGET, max(remaining - 1, 0)
            case MaxAttemptsMode.TOTAL:
                return _Decision.CHECK_BUDGET, max(remaining - 1, 0)
        raise ValueError(f"unknown max attempts mode: {self.max_attempts_mode!r}")


def with_retry(
    retryer: Retryer[Any, Any] | None = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator factory to retry a function that raises instead of returning a Result.

    The wrapped function takes a :class:`Context` as its first argument;
    exceptions it raises are fed to the retryer as ``Err`` values and the
    last one is re-raised when the policy gives up.

    Example:
        >>> from fallible.execution.classify import is_retryable_network_error
        >>> policy = Retryer().with_is_retryable(lambda ctx, e: is_retryable_network_error(e))
        >>> @with_retry(policy)
        ... def fetch(ctx, url):
        ...     return client.get(url)  # doctest: +SKIP
    """
    policy: Retryer[Any, Any] = retryer if retryer is not None else Retryer()

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(ctx: Context, *args: Any, **kwargs: Any) -> T:
            def attempt(attempt_ctx: Context) -> Result[T, Exception]:
                try:
                    return Ok(func(attempt_ctx, *args, **kwargs))
                except Exception as e:
                    return Err(e)

            return policy.do(ctx, attempt).unwrap()

        return wrapper

    return decorator


__all__ = [
    "BackoffFn",
    "IsRetryableFn",
    "EarlyReturnFn",
    "RetryableFn",
    "MAX_ATTEMPTS_LIMIT",
    "Retryer",
    "never_retryable",
    "with_retry",
]
