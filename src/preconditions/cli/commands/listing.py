"""``preconditions list`` command."""

from __future__ import annotations

import click
from rich.table import Table

from preconditions.cli.common import cli_error_handler
from preconditions.cli.console import console
from preconditions.cli.context import get_cli_context
from preconditions.cli.output import OutputFormat, format_json


@click.command("list")
@click.option(
    "-f",
    "--format",
    "fmt",
    type=click.Choice([f.value for f in OutputFormat]),
    default=OutputFormat.TEXT.value,
    help="Output format.",
)
@click.pass_context
def list_preconditions(ctx: click.Context, fmt: str) -> None:
    """List every registered precondition and what it depends on.

    Nothing is evaluated.

    Examples:
        preconditions list
        preconditions list --format json
    """
    with cli_error_handler():
        descriptions = get_cli_context(ctx).preconditions().describe_all()

    if fmt == OutputFormat.JSON.value:
        click.echo(format_json([d.to_dict() for d in descriptions]))
        return

    table = Table(show_lines=False, padding=(0, 2))
    table.add_column("Precondition", style="bold", no_wrap=True)
    table.add_column("Depends on")
    table.add_column("Contributor")
    table.add_column("Description")

    for description in descriptions:
        table.add_row(
            description.name,
            ", ".join(description.dependencies) or "-",
            description.contributor or "-",
            description.description,
        )

    console.print(table)
