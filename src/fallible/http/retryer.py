"""
HTTP retry adapter.

``HttpRetryer`` wraps the generic :class:`~fallible.execution.retry.Retryer`
around an httpx request/response round trip. Every attempt rebuilds the
request, sends it, turns unexpected status codes into a
:class:`~fallible.http.status.StatusCodeError` and, for :meth:`HttpRetryer.do`,
decodes the body into the caller's type.

Manifesto:
    - **Fresh request per attempt:** request bodies are not reusable, so the
      caller supplies a builder that is invoked once per attempt
    - **Bounded bodies:** captured error bodies and drained remainders never
      exceed ``max_bytes``
    - **Connections go back to the pool:** every response the adapter does
      not hand to the caller is drained and closed, on every exit path
    - **Terminal contract violations:** build and decode failures are never
      retried, whatever predicates are configured

Architecture:
    ::

        do_response(ctx, build, *expected)          do(ctx, build, target, *expected)
                 │                                            │
                 ▼                                            ▼
        Retryer.do ── per attempt ──▶ build(ctx) ──▶ client.send(stream=True)
                                          │                   │
                                 BuildRequestError   status not expected?
                                     (terminal)        ├─ yes: capture ≤ max_bytes,
                                                       │       close, StatusCodeError
                                                       └─ no:  Ok(response)
                                                                ── do(): decode, drain

Examples:
    >>> import httpx
    >>> from fallible.core.context import background
    >>> retryer = HttpRetryer().with_max_attempts(MaxAttemptsMode.TOTAL, 3)
    >>> result = retryer.do(
    ...     background(),
    ...     lambda ctx: httpx.Request("GET", "https://api.example.com/users/1"),
    ...     dict,
    ...     200,
    ... )  # doctest: +SKIP
    >>> result.unwrap()  # doctest: +SKIP
    {'id': 1, 'name': 'Ada'}

Guardrails:
    ❌ DON'T: Build the request once and return the same object every attempt
    ✅ DO: Construct a new ``httpx.Request`` inside the builder

    ❌ DON'T: Forget to close the response returned by ``do_response``
    ✅ DO: ``with result.unwrap() as response: ...``

Tags:
    http, retry, httpx, backoff, fallible

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import Any

import httpx

from fallible.core.context import Context, ContextError
from fallible.core.enums import MaxAttemptsMode
from fallible.core.errors import BuildRequestError, DecodeError, ErrorContext
from fallible.core.logging import get_logger
from fallible.core.result import Err, Ok, Result
from fallible.core.settings import RetrySettings
from fallible.core.sizes import MiB
from fallible.execution.backoff import ConstantBackoff, NoBackoff
from fallible.execution.classify import is_retryable_http_error, iter_chain
from fallible.execution.retry import (
    MAX_ATTEMPTS_LIMIT,
    BackoffFn,
    EarlyReturnFn,
    IsRetryableFn,
    Retryer,
    never_retryable,
)
from fallible.http.backoff import RetryAfterBackoff
from fallible.http.body import capture_body, drain
from fallible.http.decode import decode_response
from fallible.http.status import (
    StatusCodeError,
    is_non_retryable_status_code,
    is_retryable_status_code,
)

logger = get_logger(__name__)

DEFAULT_MAX_BYTES = 2 * MiB

BuildRequestFn = Callable[[Context], "httpx.Request | Result[httpx.Request, Exception]"]
DecodeFn = Callable[[Context, httpx.Response, int, Any], Any]
IsRetryableStatusCodeFn = Callable[[Context, int], bool]

_default_client: httpx.Client | None = None
_default_client_lock = threading.Lock()


def default_client() -> httpx.Client:
    """Process-wide client shared by retryers built without one.

    Created on first use, and again if someone closed it.
    """
    global _default_client
    with _default_client_lock:
        if _default_client is None or _default_client.is_closed:
            _default_client = httpx.Client()
        return _default_client


def default_is_retryable(ctx: Context, err: Any) -> bool:
    return isinstance(err, BaseException) and is_retryable_http_error(err)


def default_is_retryable_status_code(ctx: Context, code: int) -> bool:
    return is_retryable_status_code(code)


def default_early_return(ctx: Context, err: Any) -> bool:
    """Stop at once on status codes that will never succeed (400, 404, ...)."""
    if not isinstance(err, BaseException):
        return False
    for e in iter_chain(err):
        if isinstance(e, StatusCodeError):
            return is_non_retryable_status_code(e.status_code)
    return False


def is_terminal_error(err: Any) -> bool:
    """Build and decode failures are contract violations, never transient."""
    return isinstance(err, (BuildRequestError, DecodeError))


def _never_status_retryable(ctx: Context, code: int) -> bool:
    return False


def _skip_decode(ctx: Context, response: httpx.Response, max_bytes: int, target: Any) -> None:
    return None


@dataclass(frozen=True)
class HttpRetryer:
    """Retry policy for HTTP round trips over an ``httpx.Client``.

    Stateless and reusable: every ``with_*`` call returns a new value, so a
    shared base can be tweaked for one-off requests.

    Attributes:
        client: Transport; anything with ``send(request, stream=...)``
        is_retryable: Classifies transport and status-code errors
        is_retryable_status_code: ``(ctx, code)``; sets ``StatusCodeError.retryable``
        early_return: Ends the loop for errors that are not retryable
        decode: ``(ctx, response, max_bytes, target) -> value``
        backoff: Wait between attempts (Retry-After aware by default)
        timeout: Per-attempt timeout in seconds; 0 disables it
        max_bytes: Cap for captured error bodies, decoding and draining
        max_attempts_mode: How failures consume the attempt budget
        max_attempts: Budget size (0..255)
    """

    client: httpx.Client = field(default_factory=default_client)
    is_retryable: IsRetryableFn = default_is_retryable
    is_retryable_status_code: IsRetryableStatusCodeFn = default_is_retryable_status_code
    early_return: EarlyReturnFn | None = default_early_return
    decode: DecodeFn = decode_response
    backoff: BackoffFn = field(default_factory=RetryAfterBackoff)
    timeout: float = 0.0
    max_bytes: int = DEFAULT_MAX_BYTES
    max_attempts_mode: MaxAttemptsMode = MaxAttemptsMode.NON_RETRYABLE_RESET
    max_attempts: int = 5

    def __post_init__(self) -> None:
        if not 0 <= self.max_attempts <= MAX_ATTEMPTS_LIMIT:
            raise ValueError(
                f"max_attempts must be between 0 and {MAX_ATTEMPTS_LIMIT}, got {self.max_attempts}"
            )
        if self.timeout < 0:
            raise ValueError(f"timeout must be >= 0, got {self.timeout}")
        if self.max_bytes < 0:
            raise ValueError(f"max_bytes must be >= 0, got {self.max_bytes}")

    # ── Builders ─────────────────────────────────────────────────────

    def with_client(self, client: httpx.Client) -> HttpRetryer:
        return replace(self, client=client)

    def with_is_retryable(self, fn: IsRetryableFn | None) -> HttpRetryer:
        return replace(self, is_retryable=fn or never_retryable)

    def with_retryable_status_code(self, fn: IsRetryableStatusCodeFn | None) -> HttpRetryer:
        """Set the status-code classifier; ``None`` treats every code as non-retryable."""
        return replace(self, is_retryable_status_code=fn or _never_status_retryable)

    def with_early_return(self, fn: EarlyReturnFn | None) -> HttpRetryer:
        return replace(self, early_return=fn)

    def with_decode(self, fn: DecodeFn | None) -> HttpRetryer:
        """Set the decode function; ``None`` skips decoding (``do`` yields None)."""
        return replace(self, decode=fn or _skip_decode)

    def with_max_attempts(self, mode: MaxAttemptsMode, max_attempts: int) -> HttpRetryer:
        return replace(self, max_attempts_mode=MaxAttemptsMode(mode), max_attempts=max_attempts)

    def with_backoff(self, fn: BackoffFn | None) -> HttpRetryer:
        return replace(self, backoff=fn or NoBackoff())

    def with_max_bytes(self, max_bytes: int) -> HttpRetryer:
        """Cap for error body capture, decoding and draining before close."""
        return replace(self, max_bytes=max_bytes)

    def with_timeout(self, seconds: float) -> HttpRetryer:
        """Per-attempt timeout, not a budget for the whole call."""
        return replace(self, timeout=seconds)

    @classmethod
    def from_settings(
        cls,
        settings: RetrySettings,
        client: httpx.Client | None = None,
    ) -> HttpRetryer:
        return cls(
            client=client if client is not None else default_client(),
            backoff=RetryAfterBackoff(fallback=ConstantBackoff(settings.backoff_delay)),
            timeout=settings.attempt_timeout,
            max_bytes=settings.max_bytes,
            max_attempts_mode=settings.max_attempts_mode,
            max_attempts=settings.max_attempts,
        )

    # ── Execution ────────────────────────────────────────────────────

    def do_response(
        self,
        ctx: Context,
        build_request: BuildRequestFn,
        *expected_codes: int,
    ) -> Result[httpx.Response, Exception]:
        """Retry until a response with one of ``expected_codes`` arrives.

        With no expected codes any response is accepted and only transport
        errors are retried.

        NOTE: the returned response is streaming; the caller must read and
        close it.
        """
        expected = frozenset(expected_codes)
        return self._retryer().do(ctx, lambda c: self._send(c, build_request, expected))

    def do(
        self,
        ctx: Context,
        build_request: BuildRequestFn,
        target: Any = None,
        *expected_codes: int,
    ) -> Result[Any, Exception]:
        """Retry like :meth:`do_response`, then decode the body into ``target``.

        ``target`` is anything pydantic's ``TypeAdapter`` accepts; None
        returns the parsed data as-is. The response is always drained and
        closed, including when decoding fails.
        """
        expected = frozenset(expected_codes)
        return self._retryer().do(ctx, lambda c: self._send_and_decode(c, build_request, target, expected))

    def _retryer(self) -> Retryer[Any, Exception]:
        return Retryer(
            is_retryable=self._is_retryable,
            early_return=self._early_return,
            max_attempts_mode=self.max_attempts_mode,
            max_attempts=self.max_attempts,
            backoff=self.backoff,
            timeout=self.timeout,
        )

    def _is_retryable(self, ctx: Context, err: Any) -> bool:
        if is_terminal_error(err):
            return False
        return self.is_retryable(ctx, err)

    def _early_return(self, ctx: Context, err: Any) -> bool:
        if is_terminal_error(err):
            return True
        return self.early_return is not None and self.early_return(ctx, err)

    def _build(self, ctx: Context, build_request: BuildRequestFn) -> Result[httpx.Request, Exception]:
        try:
            built = build_request(ctx)
        except Exception as e:
            return Err(BuildRequestError(f"failed to build request: {e}", cause=e))

        if isinstance(built, Err):
            cause = built.error if isinstance(built.error, BaseException) else None
            return Err(BuildRequestError(f"failed to build request: {built.error}", cause=cause))
        request = built.value if isinstance(built, Ok) else built
        if not isinstance(request, httpx.Request):
            return Err(BuildRequestError(f"request builder returned {type(request).__name__}, not httpx.Request"))
        return Ok(request)

    def _send(
        self,
        ctx: Context,
        build_request: BuildRequestFn,
        expected: frozenset[int],
    ) -> Result[httpx.Response, Exception]:
        ctx_err = ctx.err()
        if ctx_err is not None:
            return Err(ctx_err)

        built = self._build(ctx, build_request)
        if isinstance(built, Err):
            return built
        request = built.value

        remaining = ctx.remaining()
        if remaining is not None:
            request.extensions["timeout"] = httpx.Timeout(max(remaining, 0.0)).as_dict()

        try:
            response = self.client.send(request, stream=True)
        except httpx.HTTPError as e:
            return Err(_transport_error(ctx, e))

        if not expected or response.status_code in expected:
            return Ok(response)

        try:
            body, read_err = capture_body(response, self.max_bytes)
        finally:
            drain(response, self.max_bytes)

        code = response.status_code
        if read_err is not None:
            # The read error stays unchained; only the status decides retryability.
            logger.debug("status_body_read_failed", status_code=code, error=str(read_err))
        return Err(
            StatusCodeError(
                code,
                is_retryable_status_code=self.is_retryable_status_code(ctx, code),
                headers=response.headers,
                body=body,
                context=ErrorContext(method=request.method, url=str(request.url)),
            )
        )

    def _send_and_decode(
        self,
        ctx: Context,
        build_request: BuildRequestFn,
        target: Any,
        expected: frozenset[int],
    ) -> Result[Any, Exception]:
        sent = self._send(ctx, build_request, expected)
        if isinstance(sent, Err):
            return sent
        response = sent.value
        try:
            return Ok(self.decode(ctx, response, self.max_bytes, target))
        except DecodeError as e:
            return Err(e)
        except httpx.HTTPError as e:
            return Err(_transport_error(ctx, e))
        except Exception as e:
            return Err(DecodeError(f"failed to decode response: {e}", cause=e))
        finally:
            # After a partial read drain() can only close, and the connection is not reused.
            drain(response, self.max_bytes)


def _transport_error(ctx: Context, err: httpx.HTTPError) -> Exception:
    """Report an httpx timeout caused by the attempt's deadline as the context error."""
    ctx_err = ctx.err()
    if isinstance(err, httpx.TimeoutException) and ctx_err is not None:
        surfaced: ContextError = type(ctx_err)()
        surfaced.__cause__ = err
        return surfaced
    return err


__all__ = [
    "DEFAULT_MAX_BYTES",
    "BuildRequestFn",
    "DecodeFn",
    "IsRetryableStatusCodeFn",
    "HttpRetryer",
    "default_client",
    "default_is_retryable",
    "default_is_retryable_status_code",
    "default_early_return",
    "is_terminal_error",
]
