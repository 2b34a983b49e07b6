"""
Shared pytest fixtures and configuration for fallible tests.

This module provides:
- Auto-marking of tests by location
- A fresh root Context per test
- Settings cache isolation
- An in-process HTTP server built on httpx.MockTransport

Usage:
    Fixtures are auto-discovered by pytest; request them as arguments.

    def test_something(ctx, mock_server):
        ...
"""

from __future__ import annotations

from collections.abc import Callable, Generator, Iterable
from pathlib import Path

import httpx
import pytest

from fallible.core.context import Context, background
from fallible.core.settings import reset_settings


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)

        if "integration" in str(test_path):
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration", "slow"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Core Fixtures
# =============================================================================


@pytest.fixture
def ctx() -> Generator[Context, None, None]:
    """Root context, cancelled after the test so no waits leak."""
    root = background()
    yield root
    root.cancel()


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Drop FALLIBLE_* variables and the settings cache around each test."""
    import os

    for key in list(os.environ):
        if key.startswith("FALLIBLE_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(Path(__file__).parent)
    reset_settings()
    yield
    reset_settings()


# =============================================================================
# HTTP Fixtures
# =============================================================================


class MockServer:
    """Scripted responses for an httpx.MockTransport.

    Each request pops the next entry from ``responses``; the last entry
    repeats once the script runs out. An entry is either an
    ``httpx.Response``, an exception to raise, or a callable taking the
    request.
    """

    def __init__(self, responses: Iterable[object] = ()):
        self.responses: list[object] = list(responses)
        self.requests: list[httpx.Request] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            return httpx.Response(200)
        entry = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(entry, BaseException):
            raise entry
        if callable(entry) and not isinstance(entry, httpx.Response):
            return entry(request)
        assert isinstance(entry, httpx.Response)
        return httpx.Response(
            entry.status_code,
            headers=entry.headers,
            content=entry.content,
        )

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def mock_server() -> Callable[..., MockServer]:
    """Factory: ``mock_server(resp1, resp2, ...)`` -> MockServer."""

    def factory(*responses: object) -> MockServer:
        return MockServer(responses)

    return factory


@pytest.fixture
def get_request() -> Callable[[Context], httpx.Request]:
    """Request builder that constructs a fresh GET each attempt."""

    def build(ctx: Context) -> httpx.Request:
        return httpx.Request("GET", "https://api.example.com/items")

    return build
