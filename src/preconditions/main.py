"""``preconditions`` command-line entry point.

Reports which environment preconditions hold on this machine, using the same
discovery and configuration as the pytest plugin.
"""

from __future__ import annotations

from pathlib import Path

import click

from preconditions import __version__
from preconditions.cli.commands import check, list_preconditions, report
from preconditions.cli.common import print_error
from preconditions.cli.context import CLIContext, ExitCode
from preconditions.cli.output import describe_error
from preconditions.config import load_config
from preconditions.exceptions import ConfigError
from preconditions.logging import configure_logging, verbosity_level


@click.group()
@click.version_option(version=__version__, prog_name="preconditions")
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Read settings from this file instead of ./preconditions.yaml.",
)
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Log probes (-v for INFO, -vv for DEBUG).",
)
@click.option(
    "-q",
    "--quiet",
    is_flag=True,
    default=False,
    help="Log errors only.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_file: Path | None,
    verbose: int,
    quiet: bool,
) -> None:
    """Inspect the environment preconditions that gate tests."""
    try:
        config = load_config(config_file)
    except ConfigError as e:
        print_error(describe_error(e))
        ctx.exit(ExitCode.FAILURE)

    configure_logging(level=verbosity_level(verbose, quiet, config.verbosity))
    ctx.obj = {
        "cli_ctx": CLIContext(
            config=config,
            config_path=config_file,
            verbosity=verbose,
            quiet=quiet,
        )
    }


cli.add_command(list_preconditions)
cli.add_command(check)
cli.add_command(report)


if __name__ == "__main__":
    cli()
