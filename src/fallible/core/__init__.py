"""Fallible Core -- the primitives every retrying call is built from.

Architecture::

    context.py     Cancellation/deadline scopes (Context, background)
    result.py      Result envelope (Ok / Err / try_result)
    errors.py      Structured error hierarchy with explicit retry semantics
    enums.py       MaxAttemptsMode
    sizes.py       Byte-size constants (KiB, MiB, ...)
    logging.py     structlog configuration
    settings.py    FALLIBLE_* environment defaults
"""

from fallible.core.context import (
    Cancelled,
    Context,
    ContextError,
    DeadlineExceeded,
    background,
    shutdown_context,
)
from fallible.core.enums import MaxAttemptsMode
from fallible.core.errors import (
    BodyTooLargeError,
    BuildRequestError,
    DecodeError,
    ErrorCategory,
    ErrorContext,
    FallibleError,
    RetryableError,
    TransientError,
    UnsupportedContentTypeError,
    categorize_error,
    get_retry_after,
    is_retryable,
)
from fallible.core.result import Err, Ok, Result, try_result
from fallible.core.sizes import GB, KB, MB, TB, GiB, KiB, MiB, TiB

__all__ = [
    # context
    "Cancelled",
    "Context",
    "ContextError",
    "DeadlineExceeded",
    "background",
    "shutdown_context",
    # enums
    "MaxAttemptsMode",
    # errors
    "BodyTooLargeError",
    "BuildRequestError",
    "DecodeError",
    "ErrorCategory",
    "ErrorContext",
    "FallibleError",
    "RetryableError",
    "TransientError",
    "UnsupportedContentTypeError",
    "categorize_error",
    "get_retry_after",
    "is_retryable",
    # result
    "Err",
    "Ok",
    "Result",
    "try_result",
    # sizes
    "KB",
    "MB",
    "GB",
    "TB",
    "KiB",
    "MiB",
    "GiB",
    "TiB",
]
