from __future__ import annotations

from preconditions.cli.commands.check import check
from preconditions.cli.commands.listing import list_preconditions
from preconditions.cli.commands.report import report

__all__ = ["check", "list_preconditions", "report"]
