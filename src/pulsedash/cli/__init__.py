"""Command-line interface for PulseDash."""

from pulsedash.cli.main import app, main

__all__ = ["app", "main"]
