"""Command-line interface for polycov."""

from polycov.cli.runner import CLIRunner, main

__all__ = ["CLIRunner", "main"]
