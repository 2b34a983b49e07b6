"""Retry-After aware backoff for HTTP retries."""

from __future__ import annotations

from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any

from fallible.core.context import Context
from fallible.core.errors import get_retry_after
from fallible.core.logging import get_logger
from fallible.execution.backoff import BackoffStrategy, ConstantBackoff
from fallible.execution.classify import iter_chain
from fallible.http.headers import parse_retry_after
from fallible.http.status import StatusCodeError

logger = get_logger(__name__)

RETRY_AFTER_STATUS_CODES = frozenset({HTTPStatus.TOO_MANY_REQUESTS, HTTPStatus.SERVICE_UNAVAILABLE})


def retry_after_hint(err: Any) -> float | None:
    """Wait requested by the failure itself, if any.

    A 429/503 ``StatusCodeError`` with a ``Retry-After`` header wins;
    otherwise the first error in the chain declaring ``retry_after`` is
    used. A date already in the past yields 0.
    """
    if not isinstance(err, BaseException):
        return None
    chain = list(iter_chain(err))
    for e in chain:
        if isinstance(e, StatusCodeError) and e.headers and e.status_code in RETRY_AFTER_STATUS_CODES:
            hint = parse_retry_after(e.headers)
            if hint is not None:
                return max(hint, 0.0)
    for e in chain:
        declared = get_retry_after(e)
        if declared is not None:
            return max(declared, 0.0)
    return None


@dataclass(frozen=True)
class RetryAfterBackoff(BackoffStrategy):
    """Honour ``Retry-After`` on 429/503 responses or an error's ``retry_after``, else use ``fallback``.

    This is the default backoff of :class:`~fallible.http.retryer.HttpRetryer`.

    Example:
        >>> retryer = HttpRetryer().with_backoff(
        ...     RetryAfterBackoff(fallback=ExponentialBackoff(base_delay=0.5))
        ... )  # doctest: +SKIP
    """

    fallback: BackoffStrategy = field(default_factory=ConstantBackoff)

    def next_delay(self, attempt: int) -> float:
        return self.fallback.next_delay(attempt)

    def __call__(self, ctx: Context, attempt: int, err: Any) -> None:
        hint = retry_after_hint(err)
        if hint is None:
            self.fallback(ctx, attempt, err)
            return
        logger.debug("retry_after_backoff", attempt=attempt, delay=hint, error=str(err))
        if hint > 0:
            ctx.wait(hint)


__all__ = ["RETRY_AFTER_STATUS_CODES", "RetryAfterBackoff", "retry_after_hint"]
