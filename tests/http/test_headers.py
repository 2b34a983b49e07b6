"""Tests for Retry-After parsing."""

from datetime import datetime, timedelta, timezone
from email.utils import format_datetime

import httpx
import pytest

from fallible.http.headers import parse_retry_after

NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)


class TestParseRetryAfter:
    """Tests for parse_retry_after."""

    def test_seconds(self):
        assert parse_retry_after({"Retry-After": "120"}) == 120.0

    def test_zero_seconds(self):
        assert parse_retry_after({"Retry-After": "0"}) == 0.0

    def test_case_insensitive_mapping(self):
        assert parse_retry_after({"retry-after": "5"}) == 5.0

    def test_httpx_headers(self):
        assert parse_retry_after(httpx.Headers({"RETRY-AFTER": "7"})) == 7.0

    def test_http_date_in_future(self):
        when = format_datetime(NOW + timedelta(seconds=90), usegmt=True)
        assert parse_retry_after({"Retry-After": when}, now=NOW) == pytest.approx(90.0)

    def test_http_date_in_past_is_negative(self):
        when = format_datetime(NOW - timedelta(seconds=30), usegmt=True)
        assert parse_retry_after({"Retry-After": when}, now=NOW) == pytest.approx(-30.0)

    def test_http_date_default_now(self):
        when = format_datetime(datetime.now(timezone.utc) + timedelta(hours=1), usegmt=True)
        assert 3500 < parse_retry_after({"Retry-After": when}) <= 3600

    @pytest.mark.parametrize("value", ["", "   ", "soon", "12abc", "Someday, 99 Foo 2026"])
    def test_malformed(self, value):
        assert parse_retry_after({"Retry-After": value}) is None

    @pytest.mark.parametrize("headers", [None, {}, {"Content-Type": "application/json"}])
    def test_absent(self, headers):
        assert parse_retry_after(headers) is None
