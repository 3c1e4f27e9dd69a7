from __future__ import annotations

from preconditions.exceptions.base import PreconditionsError


class DiscoveryError(PreconditionsError):
    """A contributor could not be loaded or failed while registering.

    Attributes:
        message: Human-readable error message.
        contributor: Name of the contributor ("module:function" or entry point).
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        contributor: str,
        cause: BaseException | None = None,
    ) -> None:
        """Initialize the DiscoveryError.

        Args:
            message: Human-readable error message.
            contributor: Name of the failing contributor.
            cause: The underlying exception.
        """
        self.contributor = contributor
        self.cause = cause
        super().__init__(message)
