"""``preconditions check`` command."""

from __future__ import annotations

import click
from rich.markup import escape

from preconditions.cli.common import cli_error_handler
from preconditions.cli.console import console
from preconditions.cli.context import ExitCode, get_cli_context
from preconditions.logging import evaluation_context, get_logger


@click.command()
@click.argument("names", nargs=-1, required=True)
@click.pass_context
def check(ctx: click.Context, names: tuple[str, ...]) -> None:
    """Evaluate the named preconditions.

    Exits 0 when all hold, 1 when any does not hold, 2 when any cannot be
    evaluated.

    Examples:
        preconditions check UNIX JDK11_OR_LATER
    """
    logger = get_logger(__name__)

    with cli_error_handler():
        preconditions = get_cli_context(ctx).preconditions()
        with evaluation_context(command="check"):
            evaluations = [preconditions.explain(name) for name in names]

    exit_code = ExitCode.SUCCESS
    for evaluation in evaluations:
        if evaluation.errored:
            error = escape(evaluation.error or "")
            console.print(
                f"[red]✗[/red] {escape(evaluation.name)}: {error}", soft_wrap=True
            )
            exit_code = ExitCode.EVALUATION_ERROR
            continue

        marker = "[green]✓[/green]" if evaluation.satisfied else "[yellow]-[/yellow]"
        suffix = f" ({escape(evaluation.reason)})" if evaluation.reason else ""
        console.print(f"{marker} {escape(evaluation.name)}{suffix}", soft_wrap=True)
        if not evaluation.satisfied and exit_code is ExitCode.SUCCESS:
            exit_code = ExitCode.FAILURE

    logger.debug("check_completed", names=names, exit_code=int(exit_code))
    raise SystemExit(exit_code)
