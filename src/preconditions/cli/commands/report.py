"""``preconditions report`` command."""

from __future__ import annotations

import click

from preconditions.cli.common import cli_error_handler
from preconditions.cli.context import ExitCode, get_cli_context
from preconditions.cli.output import OutputFormat, format_json
from preconditions.logging import evaluation_context


@click.command()
@click.option(
    "-f",
    "--format",
    "fmt",
    type=click.Choice([f.value for f in OutputFormat]),
    default=OutputFormat.TEXT.value,
    help="Output format.",
)
@click.pass_context
def report(ctx: click.Context, fmt: str) -> None:
    """Evaluate every registered precondition and summarize the environment.

    Exits 2 if any precondition could not be evaluated.

    Examples:
        preconditions report
        preconditions report --format json > preconditions.json
    """
    with cli_error_handler():
        preconditions = get_cli_context(ctx).preconditions()
        with evaluation_context(command="report"):
            result = preconditions.report()

    if fmt == OutputFormat.JSON.value:
        click.echo(format_json(result.to_dict()))
    else:
        click.echo(result.format_text())

    if not result.success:
        raise SystemExit(ExitCode.EVALUATION_ERROR)
