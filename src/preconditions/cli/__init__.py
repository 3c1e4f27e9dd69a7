"""Command-line interface for listing, checking and reporting preconditions."""

from __future__ import annotations

from preconditions.cli.context import CLIContext, ExitCode

__all__ = ["CLIContext", "ExitCode"]
