"""
Result envelope for consistent success/failure handling.

Every attempt a :class:`~fallible.execution.retry.Retryer` makes, and the
overall call, produces a ``Result``: ``Ok(value)`` for success or
``Err(error)`` for failure. There is no third "retry" state; retries are
internal to the loop and never leak to the caller.

Manifesto:
    - **Explicit over Implicit:** No hidden exceptions that callers might miss
    - **Errors as values:** The retry engine inspects, classifies and returns
      errors without unwinding the stack
    - **Functional composition:** Chain operations with map/flat_map without
      nested try/except blocks

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                     Result[T, E]                             │
        ├─────────────────┬─────────────────┬─────────────────────────┤
        │     Ok[T]       │     Err[E]      │     Utilities           │
        ├─────────────────┼─────────────────┼─────────────────────────┤
        │ • value: T      │ • error: E      │ • try_result()          │
        │ • map()         │ • map_err()     │                         │
        │ • flat_map()    │ • or_else()     │                         │
        │ • unwrap()      │ • unwrap_or()   │                         │
        └─────────────────┴─────────────────┴─────────────────────────┘

Examples:
    >>> from fallible.core.result import Ok, Err, Result
    >>> def divide(a: int, b: int) -> Result[float, ValueError]:
    ...     if b == 0:
    ...         return Err(ValueError("Division by zero"))
    ...     return Ok(a / b)
    >>> match divide(10, 2):
    ...     case Ok(value):
    ...         print(f"Result: {value}")
    ...     case Err(error):
    ...         print(f"Error: {error}")
    Result: 5.0

    >>> Err(ValueError("oops")).map(lambda x: x * 2).unwrap_or(0)
    0

Guardrails:
    ❌ DON'T: Use unwrap() without checking is_ok() first
    ✅ DO: Use unwrap_or() or pattern matching for safe extraction

    ❌ DON'T: Raise exceptions inside map/flat_map functions
    ✅ DO: Return Err from flat_map if the operation can fail

Tags:
    result-pattern, error-handling, functional-programming, fallible

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from fallible.core.errors import FallibleError

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")
F = TypeVar("F")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """
    Successful result containing a value.

    Examples:
        >>> Ok(10).map(lambda x: x * 2).unwrap()
        20
        >>> Ok(42).is_err()
        False
    """

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        """Get the value. Safe for Ok."""
        return self.value

    def unwrap_err(self) -> Any:
        """Ok has no error to return."""
        raise ValueError(f"called unwrap_err on {self!r}")

    def unwrap_or(self, default: T) -> T:
        """Get value or default (always returns value for Ok)."""
        return self.value

    def unwrap_or_else(self, f: Callable[[Any], T]) -> T:
        """Get value or call f with error (always returns value for Ok)."""
        return self.value

    def map(self, f: Callable[[T], U]) -> Ok[U]:
        """Transform the value if Ok."""
        return Ok(f(self.value))

    def map_err(self, f: Callable[[Any], Any]) -> Ok[T]:
        """Transform error if Err (no-op for Ok)."""
        return self

    def flat_map(self, f: Callable[[T], Result[U, Any]]) -> Result[U, Any]:
        """Chain to another Result-returning function."""
        return f(self.value)

    def and_then(self, f: Callable[[T], Result[U, Any]]) -> Result[U, Any]:
        """Alias for flat_map."""
        return f(self.value)

    def or_else(self, f: Callable[[Any], Result[T, Any]]) -> Ok[T]:
        """Return self if Ok, otherwise call f with error."""
        return self

    def inspect(self, f: Callable[[T], None]) -> Ok[T]:
        """Call f with value for side effects, return self."""
        f(self.value)
        return self

    def inspect_err(self, f: Callable[[Any], None]) -> Ok[T]:
        """Call f with error for side effects (no-op for Ok)."""
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"ok": True, "value": self.value}

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """
    Failed result containing an error.

    Err short-circuits transformation operations: map() and flat_map()
    return the same Err unchanged, so errors propagate through chains.

    Examples:
        >>> err = Err(ValueError("something went wrong"))
        >>> err.is_err()
        True
        >>> err.unwrap_or("default")
        'default'
        >>> Err(ValueError("x")).or_else(lambda e: Ok("backup")).unwrap()
        'backup'
    """

    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> Any:
        """Raise the error. Use only when you're sure it's Ok."""
        if isinstance(self.error, BaseException):
            raise self.error
        raise ValueError(f"called unwrap on {self!r}")

    def unwrap_err(self) -> E:
        """Get the error. Safe for Err."""
        return self.error

    def unwrap_or(self, default: T) -> T:
        """Return the default (Err has no value)."""
        return default

    def unwrap_or_else(self, f: Callable[[E], T]) -> T:
        """Compute a value from the error."""
        return f(self.error)

    def map(self, f: Callable[[Any], Any]) -> Err[E]:
        """No-op for Err."""
        return self

    def map_err(self, f: Callable[[E], F]) -> Err[F]:
        """Transform the error."""
        return Err(f(self.error))

    def flat_map(self, f: Callable[[Any], Any]) -> Err[E]:
        """No-op for Err."""
        return self

    def and_then(self, f: Callable[[Any], Any]) -> Err[E]:
        """No-op for Err."""
        return self

    def or_else(self, f: Callable[[E], Result[T, F]]) -> Result[T, F]:
        """Recover by calling f with the error."""
        return f(self.error)

    def inspect(self, f: Callable[[Any], None]) -> Err[E]:
        """No-op for Err."""
        return self

    def inspect_err(self, f: Callable[[E], None]) -> Err[E]:
        """Call f with error for side effects, return self."""
        f(self.error)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        if isinstance(self.error, FallibleError):
            return {"ok": False, "error": self.error.to_dict()}
        return {
            "ok": False,
            "error": {"error_type": type(self.error).__name__, "message": str(self.error)},
        }

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result = Ok[T] | Err[E]


def try_result(f: Callable[[], T]) -> Result[T, Exception]:
    """
    Call ``f`` and capture a raised exception as ``Err``.

    Examples:
        >>> try_result(lambda: int("42"))
        Ok(42)
        >>> try_result(lambda: int("x")).is_err()
        True
    """
    try:
        return Ok(f())
    except Exception as e:
        return Err(e)


__all__ = ["Ok", "Err", "Result", "try_result"]
