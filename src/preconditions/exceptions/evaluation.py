from __future__ import annotations

from collections.abc import Sequence

from preconditions.exceptions.base import PreconditionsError

__all__ = ["ProbeError", "ProbeTimeoutError", "PreconditionEvaluationError"]


class ProbeError(PreconditionsError):
    """A fact provider could not compute its fact.

    Raised for non-zero subprocess exits, unparseable output, missing
    executables and network failures.

    Attributes:
        message: Human-readable error message.
        fact_key: The fact being computed, when known.
        command: The command that was run, for subprocess probes.
    """

    def __init__(
        self,
        message: str,
        fact_key: str | None = None,
        command: Sequence[str] | None = None,
    ) -> None:
        """Initialize the ProbeError.

        Args:
            message: Human-readable error message.
            fact_key: The fact being computed.
            command: The command that was run.
        """
        self.fact_key = fact_key
        self.command = list(command) if command is not None else None
        super().__init__(message)


class ProbeTimeoutError(ProbeError):
    """A probe exceeded its bounded timeout.

    Attributes:
        message: Human-readable error message.
        timeout_seconds: The timeout that was exceeded.
    """

    def __init__(
        self,
        message: str,
        timeout_seconds: float | None = None,
        fact_key: str | None = None,
        command: Sequence[str] | None = None,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(message, fact_key=fact_key, command=command)


class PreconditionEvaluationError(PreconditionsError):
    """A precondition could not be decided.

    Wraps the underlying ``ProbeError`` or the exception raised by the
    predicate. The host decides whether this means "skip" or "fail".

    Attributes:
        message: Human-readable error message.
        name: The precondition being evaluated.
        cause: The underlying exception.
    """

    def __init__(self, name: str, cause: BaseException) -> None:
        """Initialize the PreconditionEvaluationError.

        Args:
            name: The precondition being evaluated.
            cause: The underlying exception.
        """
        self.name = name
        self.cause = cause
        detail = cause.message if isinstance(cause, PreconditionsError) else cause
        super().__init__(f"Cannot evaluate precondition '{name}': {detail}")
