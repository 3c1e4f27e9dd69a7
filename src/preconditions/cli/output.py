"""Output formatting utilities for the CLI."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

from preconditions.exceptions import PreconditionsError

__all__ = ["OutputFormat", "format_error", "format_json", "describe_error"]


class OutputFormat(str, Enum):
    """Supported output formats for CLI commands."""

    TEXT = "text"
    JSON = "json"


def format_error(
    message: str, details: list[str] | None = None, suggestion: str | None = None
) -> str:
    """Format an error message with optional details and suggestion.

    Example:
        >>> print(format_error(
        ...     "Unknown precondition 'HAS_GPU'",
        ...     suggestion="Run 'preconditions list'",
        ... ))
        Error: Unknown precondition 'HAS_GPU'
        Suggestion: Run 'preconditions list'
    """
    lines = [f"Error: {message}"]

    if details:
        for detail in details:
            lines.append(f"  {detail}")

    if suggestion:
        lines.append(f"Suggestion: {suggestion}")

    return "\n".join(lines)


def describe_error(error: PreconditionsError) -> str:
    """Format a library error for the CLI boundary, including its cause chain."""
    details = error.details()
    cause = error.__cause__
    while cause is not None:
        details.append(f"Caused by: {type(cause).__name__}: {cause}")
        cause = cause.__cause__
    return format_error(error.message, details=details or None)


def format_json(data: Any) -> str:
    """Format data as indented JSON; non-serializable values become strings."""
    return json.dumps(data, indent=2, default=str)
