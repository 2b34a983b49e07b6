"""Shared enumerations for fallible.

Enums are ``str`` subclasses so their values round-trip through
environment variables, JSON, and CLI options unchanged.
"""

from enum import Enum


class MaxAttemptsMode(str, Enum):
    """How the attempt budget of a :class:`~fallible.execution.retry.Retryer` is consumed.

    NON_RETRYABLE_RESET:
        Only non-retryable errors consume the budget, and any retryable
        error refills it to the configured maximum.
    NON_RETRYABLE:
        Only non-retryable errors consume the budget; retryable errors
        retry for free but never refill it.
    TOTAL:
        Every failure consumes the budget, retryable or not.
    UNLIMITED:
        The budget never runs out. Only an early return or cancellation of
        the caller's context ends the loop.
    """

    NON_RETRYABLE_RESET = "non_retryable_reset"
    NON_RETRYABLE = "non_retryable"
    TOTAL = "total"
    UNLIMITED = "unlimited"


__all__ = ["MaxAttemptsMode"]
