from __future__ import annotations


class PreconditionsError(Exception):
    """Root of every error this package raises on purpose.

    Hosts (the CLI, the pytest plugin) catch this class at their boundary.
    ``message`` is the one-line text shown to users; ``details()`` returns
    extra lines a host may print under it.

    Example:
        ```python
        try:
            registry = load_registry(config)
        except PreconditionsError as e:
            raise pytest.UsageError(e.message) from e
        ```
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def details(self) -> list[str]:
        return []
