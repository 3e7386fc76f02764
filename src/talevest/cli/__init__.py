"""Tale Vesting command line interface."""

from talevest.cli.main import cli, main

__all__ = ["cli", "main"]
