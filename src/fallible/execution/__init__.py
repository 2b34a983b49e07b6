"""Fallible Execution -- the generic retry engine.

::

    Retryer (policy value, builder-style)
      ├── is_retryable   ─ classify.py (network / HTTP transient errors)
      ├── early_return   ─ terminal failures that skip the budget
      ├── max_attempts   ─ MaxAttemptsMode accounting
      ├── backoff        ─ backoff.py (constant, exponential, linear, logging)
      └── timeout        ─ per-attempt Context deadline
"""

from fallible.execution.backoff import (
    BackoffStrategy,
    ConstantBackoff,
    ExponentialBackoff,
    LinearBackoff,
    LoggingBackoff,
    NoBackoff,
)
from fallible.execution.classify import (
    is_retryable_http_error,
    is_retryable_network_error,
    retryable_http_reason,
    retryable_network_reason,
)
from fallible.execution.retry import Retryer, never_retryable, with_retry

__all__ = [
    "BackoffStrategy",
    "ConstantBackoff",
    "ExponentialBackoff",
    "LinearBackoff",
    "LoggingBackoff",
    "NoBackoff",
    "is_retryable_http_error",
    "is_retryable_network_error",
    "retryable_http_reason",
    "retryable_network_reason",
    "Retryer",
    "never_retryable",
    "with_retry",
]
