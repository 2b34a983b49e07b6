"""
CLI: ``fallible get`` -- fetch a URL with retries.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog
import typer

from fallible.cli.utils import make_client, output_error, output_value, parse_headers
from fallible.core.context import Context, shutdown_context
from fallible.core.enums import MaxAttemptsMode
from fallible.core.result import Ok
from fallible.core.settings import get_settings
from fallible.execution.backoff import LoggingBackoff
from fallible.http.body import read_limited
from fallible.http.decode import decode_response, detect_format
from fallible.http.retryer import HttpRetryer


def decode_or_text(ctx: Context, response: httpx.Response, max_bytes: int, target: Any) -> Any:
    """Decode JSON/XML bodies; return anything else as text."""
    if detect_format(response.headers.get("content-type")) is not None:
        return decode_response(ctx, response, max_bytes, target)
    return read_limited(response, max_bytes).decode(response.encoding or "utf-8", errors="replace")


def get(
    url: str = typer.Argument(..., help="URL to fetch."),
    expect: list[int] = typer.Option(
        [200], "--expect", "-e", help="Expected status code (repeatable)."
    ),
    max_attempts: int | None = typer.Option(
        None, "--max-attempts", "-n", min=0, max=255, help="Attempt budget."
    ),
    mode: MaxAttemptsMode | None = typer.Option(
        None, "--mode", "-m", case_sensitive=False, help="How failures consume the budget."
    ),
    timeout: float | None = typer.Option(
        None, "--timeout", "-t", min=0.0, help="Per-attempt timeout in seconds (0 disables)."
    ),
    header: list[str] = typer.Option([], "--header", "-H", help="Request header 'Name: value'."),
    json_out: bool = typer.Option(False, "--json", help="Print a JSON envelope."),
) -> None:
    """GET a URL, retrying transient failures, and print the body."""
    settings = get_settings()
    headers = parse_headers(header)

    with make_client() as client:
        retryer = HttpRetryer.from_settings(settings, client=client)
        retryer = retryer.with_decode(decode_or_text).with_backoff(LoggingBackoff(retryer.backoff))
        if max_attempts is not None or mode is not None:
            retryer = retryer.with_max_attempts(
                mode if mode is not None else retryer.max_attempts_mode,
                max_attempts if max_attempts is not None else retryer.max_attempts,
            )
        if timeout is not None:
            retryer = retryer.with_timeout(timeout)

        ctx = shutdown_context()
        with structlog.contextvars.bound_contextvars(url=url):
            result = retryer.do(
                ctx,
                lambda _ctx: httpx.Request("GET", url, headers=headers),
                None,
                *expect,
            )

    match result:
        case Ok(value):
            output_value(value, as_json=json_out)
        case _:
            output_error(result.unwrap_err(), as_json=json_out)
