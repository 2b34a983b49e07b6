"""Environment-driven defaults for retry policies.

``RetrySettings`` lets deployments tune attempt budgets, timeouts and body
caps without code changes. Policies are still plain values: settings are
read once and turned into a ``Retryer`` / ``HttpRetryer`` through their
``from_settings`` constructors.

Examples:
    >>> import os
    >>> os.environ["FALLIBLE_MAX_ATTEMPTS"] = "3"
    >>> reset_settings()
    >>> get_settings().max_attempts
    3

Environment variables (prefix ``FALLIBLE_``)::

    FALLIBLE_MAX_ATTEMPTS        0..255, default 5
    FALLIBLE_MAX_ATTEMPTS_MODE   non_retryable_reset | non_retryable | total | unlimited
    FALLIBLE_BACKOFF_DELAY       seconds between attempts, default 0.2
    FALLIBLE_ATTEMPT_TIMEOUT     per-attempt timeout in seconds, 0 disables
    FALLIBLE_MAX_BYTES           body capture/decode cap, default 2 MiB
    FALLIBLE_LOG_LEVEL           default INFO
    FALLIBLE_LOG_JSON            true | false, unset = auto-detect
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from fallible.core.enums import MaxAttemptsMode
from fallible.core.sizes import MiB


class RetrySettings(BaseSettings):
    """Retry defaults read from ``FALLIBLE_*`` environment variables and ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="FALLIBLE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Attempt budget ───────────────────────────────────────────────
    max_attempts: int = Field(default=5, ge=0, le=255)
    max_attempts_mode: MaxAttemptsMode = MaxAttemptsMode.NON_RETRYABLE_RESET

    # ── Timing ───────────────────────────────────────────────────────
    backoff_delay: float = Field(default=0.2, ge=0)
    attempt_timeout: float = Field(
        default=0.0,
        ge=0,
        description="Per-attempt timeout in seconds; 0 disables it",
    )

    # ── HTTP ─────────────────────────────────────────────────────────
    max_bytes: int = Field(default=2 * MiB, gt=0)

    # ── Observability ────────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool | None = None


@lru_cache(maxsize=1)
def get_settings() -> RetrySettings:
    """Process-wide settings instance (read once)."""
    return RetrySettings()


def reset_settings() -> None:
    """Forget the cached settings so the next call re-reads the environment."""
    get_settings.cache_clear()


__all__ = ["RetrySettings", "get_settings", "reset_settings"]
