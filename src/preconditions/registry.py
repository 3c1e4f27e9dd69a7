"""Precondition registry for cataloguing facts and preconditions.

This module provides the PreconditionRegistry class. Contributors populate it
during discovery; ``freeze()`` validates every reference, rejects cycles and
switches it to a read-only query phase.
"""

from __future__ import annotations

import contextlib
import threading
from collections.abc import Callable, Iterator
from enum import Enum
from typing import overload

from preconditions.exceptions import (
    CyclicDependencyError,
    DuplicateNameError,
    RegistryFrozenError,
    RegistryNotFrozenError,
    UnknownFactError,
    UnknownPreconditionError,
)
from preconditions.logging import get_logger
from preconditions.models import (
    FactKey,
    FactProvider,
    FactValue,
    PreconditionDefinition,
    PreconditionDescription,
    Predicate,
    ProbeFailurePolicy,
)

__all__ = ["PreconditionRegistry", "RegistryState"]

logger = get_logger(__name__)


class RegistryState(str, Enum):
    """Lifecycle phase of a registry. OPEN -> FROZEN, never back."""

    OPEN = "open"
    FROZEN = "frozen"


class PreconditionRegistry:
    """Registry of fact providers and precondition definitions.

    Names are kept in registration order so that listings and reports are
    reproducible. Once frozen the registry is immutable and safe to read from
    any thread without locking.

    Example:
        ```python
        registry = PreconditionRegistry()

        @registry.fact("docker_probe", description="docker info succeeds")
        def docker_probe() -> bool:
            return run_probe(["docker", "info"]).success

        registry.register(
            "HAS_DOCKER",
            lambda facts: facts["docker_probe"],
            facts=("docker_probe",),
            remediation="Start the Docker daemon",
        )

        registry.freeze()
        registry.lookup("HAS_DOCKER").facts
        # Returns: ("docker_probe",)
        ```
    """

    def __init__(self) -> None:
        """Initialize an empty, open registry."""
        self._definitions: dict[str, PreconditionDefinition] = {}
        self._providers: dict[FactKey, FactProvider] = {}
        self._state = RegistryState.OPEN
        self._lock = threading.Lock()
        self._contributor: str | None = None
        # Built by freeze()
        self._fact_dependents: dict[FactKey, tuple[str, ...]] = {}
        self._precondition_dependents: dict[str, tuple[str, ...]] = {}

    @property
    def state(self) -> RegistryState:
        return self._state

    @property
    def is_frozen(self) -> bool:
        return self._state is RegistryState.FROZEN

    @contextlib.contextmanager
    def contributing(self, contributor: str) -> Iterator[PreconditionRegistry]:
        """Attribute registrations made inside the block to ``contributor``.

        Args:
            contributor: Name recorded on each definition registered.

        Yields:
            This registry.
        """
        previous = self._contributor
        self._contributor = contributor
        try:
            yield self
        finally:
            self._contributor = previous

    # -- registration --------------------------------------------------------

    @overload
    def register(
        self,
        name: str,
        predicate: Predicate,
        *,
        facts: tuple[FactKey, ...] = (),
        requires: tuple[str, ...] = (),
        description: str = "",
        remediation: str = "",
    ) -> PreconditionDefinition: ...

    @overload
    def register(
        self,
        name: str,
        predicate: None = None,
        *,
        facts: tuple[FactKey, ...] = (),
        requires: tuple[str, ...] = (),
        description: str = "",
        remediation: str = "",
    ) -> Callable[[Predicate], Predicate]: ...

    def register(
        self,
        name: str,
        predicate: Predicate | None = None,
        *,
        facts: tuple[FactKey, ...] = (),
        requires: tuple[str, ...] = (),
        description: str = "",
        remediation: str = "",
    ) -> PreconditionDefinition | Callable[[Predicate], Predicate]:
        """Register a precondition.

        Called with a predicate, registers it immediately. Called without
        one, returns a decorator.

        Args:
            name: Unique precondition name.
            predicate: Callable over the mapping of declared facts.
            facts: Fact keys the predicate reads.
            requires: Preconditions that must be satisfied first.
            description: Human-readable description.
            remediation: User-facing hint for making it hold.

        Returns:
            The registered definition, or a decorator.

        Raises:
            DuplicateNameError: If the name is already registered.
            RegistryFrozenError: If the registry is frozen.

        Example:
            ```python
            @registry.register("JDK11_OR_LATER", facts=("java_version",))
            def jdk11_or_later(facts) -> bool:
                return facts["java_version"] >= 11
            ```
        """

        def build(fn: Predicate) -> PreconditionDefinition:
            definition = PreconditionDefinition(
                name=name,
                predicate=fn,
                facts=tuple(facts),
                requires=tuple(requires),
                description=description or (fn.__doc__ or "").strip(),
                remediation=remediation,
                contributor=self._contributor,
            )
            self.register_definition(definition)
            return definition

        if predicate is not None:
            return build(predicate)

        def decorator(fn: Predicate) -> Predicate:
            build(fn)
            return fn

        return decorator

    def register_definition(self, definition: PreconditionDefinition) -> None:
        """Register a PreconditionDefinition object directly.

        Args:
            definition: The definition to register.

        Raises:
            DuplicateNameError: If the name is already registered.
            RegistryFrozenError: If the registry is frozen.
        """
        if definition.contributor is None and self._contributor is not None:
            definition = PreconditionDefinition(
                name=definition.name,
                predicate=definition.predicate,
                facts=definition.facts,
                requires=definition.requires,
                description=definition.description,
                remediation=definition.remediation,
                contributor=self._contributor,
            )
        with self._lock:
            if self._state is RegistryState.FROZEN:
                raise RegistryFrozenError(definition.name)
            if definition.name in self._definitions:
                raise DuplicateNameError(definition.name)
            self._definitions[definition.name] = definition
        logger.debug(
            f"Registered precondition: {definition.name}",
            contributor=definition.contributor,
        )

    def register_fact(self, provider: FactProvider) -> None:
        """Register a fact provider.

        Args:
            provider: The provider to register.

        Raises:
            DuplicateNameError: If a provider for the key already exists.
            RegistryFrozenError: If the registry is frozen.
        """
        with self._lock:
            if self._state is RegistryState.FROZEN:
                raise RegistryFrozenError(provider.key)
            if provider.key in self._providers:
                raise DuplicateNameError(provider.key, kind="fact")
            self._providers[provider.key] = provider
        logger.debug(f"Registered fact: {provider.key}")

    def fact(
        self,
        key: FactKey,
        *,
        description: str = "",
        on_failure: ProbeFailurePolicy = ProbeFailurePolicy.ERROR,
    ) -> Callable[[Callable[[], FactValue]], Callable[[], FactValue]]:
        """Register the decorated zero-argument function as a fact provider.

        Args:
            key: Unique fact key.
            description: Human-readable description.
            on_failure: Policy applied when the probe raises ProbeError.

        Returns:
            Decorator registering the function.
        """

        def decorator(fn: Callable[[], FactValue]) -> Callable[[], FactValue]:
            self.register_fact(
                FactProvider(
                    key=key,
                    compute=fn,
                    description=description or (fn.__doc__ or "").strip(),
                    on_failure=on_failure,
                )
            )
            return fn

        return decorator

    # -- lifecycle -----------------------------------------------------------

    def freeze(self) -> None:
        """Validate the catalog and switch to the read-only query phase.

        Freezing an already frozen registry is a no-op. If validation fails
        the registry stays open.

        Raises:
            UnknownFactError: If a precondition reads an unregistered fact.
            UnknownPreconditionError: If a precondition requires an
                unregistered precondition.
            CyclicDependencyError: If preconditions require each other.
        """
        with self._lock:
            if self._state is RegistryState.FROZEN:
                return

            for definition in self._definitions.values():
                for key in definition.facts:
                    if key not in self._providers:
                        raise UnknownFactError(key, referenced_by=definition.name)
                for required in definition.requires:
                    if required not in self._definitions:
                        raise UnknownPreconditionError(
                            required, referenced_by=definition.name
                        )

            self._check_cycles()
            self._build_dependents()
            self._state = RegistryState.FROZEN

        logger.debug(
            "Precondition registry frozen",
            preconditions=len(self._definitions),
            facts=len(self._providers),
        )

    def _check_cycles(self) -> None:
        done: set[str] = set()
        path: list[str] = []
        on_path: set[str] = set()

        def visit(name: str) -> None:
            if name in on_path:
                start = path.index(name)
                raise CyclicDependencyError([*path[start:], name])
            if name in done:
                return
            path.append(name)
            on_path.add(name)
            for required in self._definitions[name].requires:
                visit(required)
            on_path.remove(name)
            path.pop()
            done.add(name)

        for name in self._definitions:
            visit(name)

    def _build_dependents(self) -> None:
        direct: dict[str, set[str]] = {name: set() for name in self._definitions}
        for definition in self._definitions.values():
            for required in definition.requires:
                direct[required].add(definition.name)

        def closure(roots: set[str]) -> tuple[str, ...]:
            seen = set(roots)
            stack = list(roots)
            while stack:
                for dependent in direct[stack.pop()]:
                    if dependent not in seen:
                        seen.add(dependent)
                        stack.append(dependent)
            return tuple(name for name in self._definitions if name in seen)

        self._precondition_dependents = {
            name: closure({name}) for name in self._definitions
        }
        self._fact_dependents = {
            key: closure(
                {d.name for d in self._definitions.values() if key in d.facts}
            )
            for key in self._providers
        }

    def _require_frozen(self) -> None:
        if self._state is not RegistryState.FROZEN:
            raise RegistryNotFrozenError()

    # -- queries -------------------------------------------------------------

    def lookup(self, name: str) -> PreconditionDefinition:
        """Look up a precondition by name.

        Raises:
            UnknownPreconditionError: If no precondition with this name exists.
        """
        try:
            return self._definitions[name]
        except KeyError:
            raise UnknownPreconditionError(name, available=self.list_all()) from None

    def lookup_fact(self, key: FactKey) -> FactProvider:
        """Look up a fact provider by key.

        Raises:
            UnknownFactError: If no provider for this key exists.
        """
        try:
            return self._providers[key]
        except KeyError:
            raise UnknownFactError(key) from None

    def has(self, name: str) -> bool:
        return name in self._definitions

    def has_fact(self, key: FactKey) -> bool:
        return key in self._providers

    def list_all(self) -> list[str]:
        """List precondition names in registration order."""
        return list(self._definitions)

    def list_facts(self) -> list[FactKey]:
        """List fact keys in registration order."""
        return list(self._providers)

    def describe_all(self) -> list[PreconditionDescription]:
        return [d.describe() for d in self._definitions.values()]

    def dependents_of_fact(self, key: FactKey) -> tuple[str, ...]:
        """Preconditions that transitively depend on a fact.

        Includes preconditions reading the fact directly and every
        precondition requiring one of those, in registration order.

        Raises:
            RegistryNotFrozenError: If the registry is still open.
            UnknownFactError: If the key is not registered.
        """
        self._require_frozen()
        if key not in self._fact_dependents:
            raise UnknownFactError(key)
        return self._fact_dependents[key]

    def dependents_of(self, name: str) -> tuple[str, ...]:
        """A precondition and every precondition transitively requiring it."""
        self._require_frozen()
        if name not in self._precondition_dependents:
            raise UnknownPreconditionError(name, available=self.list_all())
        return self._precondition_dependents[name]

    def evaluation_order(self, name: str) -> list[str]:
        """Requirements of a precondition in topological order, itself last.

        Raises:
            UnknownPreconditionError: If the name is unknown.
        """
        result: list[str] = []
        visited: set[str] = set()

        def visit(current: str) -> None:
            if current in visited:
                return
            visited.add(current)
            for required in self.lookup(current).requires:
                visit(required)
            result.append(current)

        visit(name)
        return result
