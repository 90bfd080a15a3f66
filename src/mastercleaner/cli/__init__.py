"""Command-line interface for mastercleaner."""

from mastercleaner.cli.main import cli_entrypoint, main

__all__ = ["cli_entrypoint", "main"]
