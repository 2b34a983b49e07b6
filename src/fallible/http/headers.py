"""Retry-After header parsing."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

RETRY_AFTER = "Retry-After"


def _get_header(headers: Mapping[str, str], name: str) -> str | None:
    value = headers.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, candidate in headers.items():
        if key.lower() == lowered:
            return candidate
    return None


def parse_retry_after(
    headers: Mapping[str, str] | None,
    now: datetime | None = None,
) -> float | None:
    """Seconds to wait according to a ``Retry-After`` header, or None.

    Accepts both forms the header allows: delay seconds (``"120"``) and an
    HTTP-date (``"Wed, 21 Oct 2026 07:28:00 GMT"``). A date yields the time
    remaining until it, which is negative if the date has already passed.
    Missing or unparsable values yield None.

    Examples:
        >>> parse_retry_after({"Retry-After": "120"})
        120.0
        >>> parse_retry_after({"retry-after": "soon"}) is None
        True
        >>> parse_retry_after({}) is None
        True
    """
    if not headers:
        return None
    value = _get_header(headers, RETRY_AFTER)
    if not value:
        return None
    value = value.strip()
    if not value:
        return None

    if value[0].isdigit():
        try:
            return float(int(value))
        except ValueError:
            return None

    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    current = now or datetime.now(timezone.utc)
    return (when - current).total_seconds()


__all__ = ["RETRY_AFTER", "parse_retry_after"]
