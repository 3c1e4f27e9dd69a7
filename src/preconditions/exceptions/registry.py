"""Registry exceptions.

Raised while contributors populate the registry or when it is frozen. All of
them are fatal to the discovery phase: a misconfigured registry must never
silently drop a precondition.
"""

from __future__ import annotations

from collections.abc import Sequence

from preconditions.exceptions.base import PreconditionsError

__all__ = [
    "RegistryError",
    "DuplicateNameError",
    "RegistryFrozenError",
    "RegistryNotFrozenError",
    "UnknownPreconditionError",
    "UnknownFactError",
    "CyclicDependencyError",
]


class RegistryError(PreconditionsError):
    """Base exception for registry failures.

    Attributes:
        message: Human-readable error message.
    """

    pass


class DuplicateNameError(RegistryError):
    """A precondition or fact with the same name is already registered.

    Attributes:
        message: Human-readable error message.
        name: The name that was registered twice.
        kind: What was being registered ("precondition" or "fact").
    """

    def __init__(self, name: str, kind: str = "precondition") -> None:
        """Initialize the DuplicateNameError.

        Args:
            name: The duplicated name.
            kind: What was being registered.
        """
        self.name = name
        self.kind = kind
        super().__init__(f"{kind.capitalize()} '{name}' is already registered")


class RegistryFrozenError(RegistryError):
    """Registration was attempted after the registry was frozen.

    Attributes:
        message: Human-readable error message.
        name: The name whose registration was rejected.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            f"Cannot register '{name}': the precondition registry is frozen"
        )


class RegistryNotFrozenError(RegistryError):
    """A query was attempted against a registry still accepting registrations."""

    def __init__(self) -> None:
        super().__init__(
            "The precondition registry must be frozen before it can be queried"
        )


class UnknownPreconditionError(RegistryError):
    """No precondition with the requested name is registered.

    Attributes:
        message: Human-readable error message.
        name: The requested name.
        available: Names that are registered.
        referenced_by: Precondition whose ``requires`` named it, if any.
    """

    def __init__(
        self,
        name: str,
        available: Sequence[str] = (),
        referenced_by: str | None = None,
    ) -> None:
        """Initialize the UnknownPreconditionError.

        Args:
            name: The requested precondition name.
            available: Names that are registered.
            referenced_by: Precondition that referenced the unknown name.
        """
        self.name = name
        self.available = tuple(available)
        self.referenced_by = referenced_by
        if referenced_by is not None:
            message = (
                f"Precondition '{referenced_by}' requires unknown "
                f"precondition '{name}'"
            )
        else:
            listing = ", ".join(self.available) or "(none)"
            message = f"Unknown precondition '{name}'. Available: {listing}"
        super().__init__(message)


class UnknownFactError(RegistryError):
    """A precondition references a fact that no provider supplies.

    Attributes:
        message: Human-readable error message.
        fact_key: The unknown fact key.
        referenced_by: Precondition that referenced the fact, if any.
    """

    def __init__(self, fact_key: str, referenced_by: str | None = None) -> None:
        self.fact_key = fact_key
        self.referenced_by = referenced_by
        if referenced_by is not None:
            message = (
                f"Precondition '{referenced_by}' depends on unknown fact '{fact_key}'"
            )
        else:
            message = f"Unknown fact '{fact_key}'"
        super().__init__(message)


class CyclicDependencyError(RegistryError):
    """Preconditions require each other in a cycle.

    Attributes:
        message: Human-readable error message.
        cycle: The names forming the cycle, first name repeated at the end.
    """

    def __init__(self, cycle: Sequence[str]) -> None:
        self.cycle = tuple(cycle)
        super().__init__(
            "Circular precondition dependency: " + " -> ".join(self.cycle)
        )
