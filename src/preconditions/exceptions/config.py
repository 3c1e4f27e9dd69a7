from __future__ import annotations

from typing import Any

from preconditions.exceptions.base import PreconditionsError


class ConfigError(PreconditionsError):
    """preconditions.yaml or a PRECONDITIONS_* variable could not be used.

    Covers unreadable files, YAML syntax errors, and values rejected by
    validation. ``field`` is the dotted path of the offending setting
    (``"probe.network_port"``) and ``value`` what was supplied, when known.

    Example:
        ```python
        raise ConfigError(
            "Invalid configuration value",
            field="probe.timeout_seconds",
            value=-1,
        )
        ```
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
    ) -> None:
        self.field = field
        self.value = value
        super().__init__(message)

    def details(self) -> list[str]:
        lines = []
        if self.field:
            lines.append(f"Field: {self.field}")
        if self.value is not None:
            lines.append(f"Value: {self.value}")
        return lines
