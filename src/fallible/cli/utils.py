"""
CLI utility helpers -- output formatting and client construction.
"""

from __future__ import annotations

import json
from typing import Any

import httpx
import typer
from rich.console import Console

from fallible.core.errors import FallibleError, categorize_error
from fallible.core.result import Err
from fallible.http.status import StatusCodeError

console = Console()
err_console = Console(stderr=True)


def make_client() -> httpx.Client:
    """HTTP client used by CLI commands (follows redirects)."""
    return httpx.Client(follow_redirects=True)


def parse_headers(values: list[str]) -> dict[str, str]:
    """Turn ``["Name: value", ...]`` into a header dict."""
    headers: dict[str, str] = {}
    for raw in values:
        name, sep, value = raw.partition(":")
        if not sep or not name.strip():
            raise typer.BadParameter(f"expected 'Name: value', got {raw!r}", param_hint="--header")
        headers[name.strip()] = value.strip()
    return headers


def _body_text(body: bytes | None) -> str:
    return body.decode("utf-8", errors="replace") if body else ""


# ── Output helpers ───────────────────────────────────────────────────────


def output_value(value: Any, *, as_json: bool = False) -> None:
    """Render a decoded response body to stdout."""
    if as_json:
        typer.echo(json.dumps({"ok": True, "value": value}, default=str))
        return
    if isinstance(value, (dict, list)):
        console.print_json(json.dumps(value, default=str))
    else:
        console.print(str(value), markup=False, highlight=False)


def output_error(error: Exception, *, as_json: bool = False) -> None:
    """Render a terminal error and exit with status 1."""
    if as_json:
        payload = Err(error).to_dict()
        if isinstance(error, StatusCodeError):
            payload["error"]["status_code"] = error.status_code
            payload["error"]["body"] = _body_text(error.body)
        typer.echo(json.dumps(payload, default=str))
        raise typer.Exit(code=1)

    category = categorize_error(error).value
    message = error.message if isinstance(error, FallibleError) else str(error) or type(error).__name__
    err_console.print(f"[bold red]Error[/bold red] ({category}): {message}")
    if isinstance(error, StatusCodeError) and error.body:
        err_console.print(_body_text(error.body), markup=False, highlight=False)
    raise typer.Exit(code=1)
