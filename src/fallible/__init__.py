"""
Fallible - retry and backoff for operations that can fail.

::

    fallible.core        Context, Result, errors, settings, logging
    fallible.execution   Retryer (generic engine), backoff, classification
    fallible.http        HttpRetryer (httpx adapter), status codes, decoding

Example:
    >>> from fallible import Retryer, MaxAttemptsMode, background
    >>> retryer = Retryer().with_max_attempts(MaxAttemptsMode.TOTAL, 3)
"""

__version__ = "0.1.0"

from fallible.core import *  # noqa: F401,F403
from fallible.core import __all__ as _core_all
from fallible.execution import *  # noqa: F401,F403
from fallible.execution import __all__ as _execution_all
from fallible.http import HttpRetryer, StatusCodeError

__all__ = ["__version__", *_core_all, *_execution_all, "HttpRetryer", "StatusCodeError"]
