"""
Root Typer application for the fallible CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from fallible.core.logging import configure_logging
from fallible.core.settings import get_settings

app = Typer(
    name="fallible",
    help="fallible — retry HTTP requests with backoff from the command line.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("fallible")
        except PackageNotFoundError:
            from fallible import __version__ as v
        typer.echo(f"fallible {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every retry."),
) -> None:
    """fallible CLI — fetch URLs with retries, backoff and timeouts."""
    settings = get_settings()
    configure_logging(
        level="DEBUG" if verbose else settings.log_level,
        json_format=settings.log_json,
    )


# ── Command registration ─────────────────────────────────────────────────

from fallible.cli.get import get  # noqa: E402

app.command("get")(get)
