"""CLI context and exit codes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path

import click

from preconditions.api import Preconditions
from preconditions.config import PreconditionsConfig
from preconditions.discovery import load_registry

__all__ = ["ExitCode", "CLIContext", "get_cli_context"]


class ExitCode(IntEnum):
    """Exit codes for the preconditions CLI.

    - 0 when every requested precondition holds
    - 1 when one does not hold, or on a usage/configuration failure
    - 2 when a precondition could not be evaluated
    - 130 for keyboard interrupt (128 + SIGINT=2)
    """

    SUCCESS = 0
    FAILURE = 1
    EVALUATION_ERROR = 2
    INTERRUPTED = 130


@dataclass(slots=True)
class CLIContext:
    """CLI context containing global options and configuration.

    Attributes:
        config: Loaded configuration.
        config_path: Path to config file (if specified via --config).
        verbosity: Verbosity level (0=default, 1=INFO, 2+=DEBUG).
        quiet: Suppress non-essential output.
    """

    config: PreconditionsConfig
    config_path: Path | None = None
    verbosity: int = 0
    quiet: bool = False
    _preconditions: Preconditions | None = field(default=None, repr=False)

    def preconditions(self) -> Preconditions:
        """Run discovery once per invocation and return the facade.

        Raises:
            DiscoveryError: If a contributor cannot be loaded or raises.
            RegistryError: If the discovered catalog is invalid.
        """
        if self._preconditions is None:
            self._preconditions = Preconditions(load_registry(self.config))
        return self._preconditions


def get_cli_context(ctx: click.Context) -> CLIContext:
    cli_ctx: CLIContext = ctx.obj["cli_ctx"]
    return cli_ctx
