"""Entry point for ``python -m fallible.cli``."""

from fallible.cli.app import app

app()
