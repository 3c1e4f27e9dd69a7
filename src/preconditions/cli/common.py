from __future__ import annotations

import contextlib
from collections.abc import Generator

from preconditions.cli.console import err_console
from preconditions.cli.context import ExitCode
from preconditions.cli.output import describe_error
from preconditions.exceptions import PreconditionsError
from preconditions.logging import get_logger


def print_error(text: str) -> None:
    err_console.print(
        text, style="red", markup=False, highlight=False, soft_wrap=True
    )


@contextlib.contextmanager
def cli_error_handler() -> Generator[None, None, None]:
    """Turn errors raised by a command body into messages and exit codes.

    - KeyboardInterrupt: exit 130
    - PreconditionsError: message and cause chain on stderr, exit 1
    - anything else: logged with traceback, exit 1

    Example:
        >>> with cli_error_handler():
        ...     preconditions = get_cli_context(ctx).preconditions()
    """
    try:
        yield
    except KeyboardInterrupt:
        print_error("\nInterrupted by user.")
        raise SystemExit(ExitCode.INTERRUPTED) from None
    except PreconditionsError as e:
        print_error(describe_error(e))
        raise SystemExit(ExitCode.FAILURE) from e
    except Exception as e:
        get_logger(__name__).exception("unexpected_command_error")
        print_error(f"Error: {e!s}")
        raise SystemExit(ExitCode.FAILURE) from e
