"""Session-scoped evaluation cache.

An EvaluationSession memoizes fact values and precondition results for one
run. Facts are assumed stable for the lifetime of a session; a new session
always re-probes. Concurrent callers asking for the same uncomputed key block
on that key's slot until the first caller publishes the result, so every
provider and predicate runs at most once per session.
"""

from __future__ import annotations

import threading
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, TypeVar

from preconditions.exceptions import (
    PreconditionEvaluationError,
    ProbeError,
    RegistryNotFrozenError,
)
from preconditions.logging import get_logger
from preconditions.models import Evaluation, FactKey, FactValue, ProbeFailurePolicy
from preconditions.registry import PreconditionRegistry

__all__ = ["EvaluationSession"]

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class _Slot:
    """One memoized computation. ``done`` is only set with ``lock`` held."""

    lock: threading.Lock = field(default_factory=threading.Lock)
    done: bool = False
    value: Any = None
    error: BaseException | None = None


E = TypeVar("E", bound=BaseException)


def _replay(error: E, **changes: Any) -> E:
    """Copy ``error`` for raising again, leaving the original untouched.

    The copy keeps the original's attributes, cause and traceback, so each
    raise starts from the same frames instead of extending a shared
    ``__traceback__``.
    """
    cls = type(error)
    clone = cls.__new__(cls, *error.args)
    clone.__dict__.update(error.__dict__, **changes)
    clone.__cause__ = error.__cause__
    clone.__suppress_context__ = error.__suppress_context__
    return clone.with_traceback(error.__traceback__)


@dataclass(frozen=True, slots=True)
class _Decision:
    satisfied: bool
    reason: str
    duration_ms: int


class EvaluationSession:
    """Evaluates preconditions against a frozen registry, caching everything.

    Example:
        ```python
        session = EvaluationSession(registry)
        if not session.evaluate("HAS_DOCKER"):
            pytest.skip(session.explain("HAS_DOCKER").format_skip_reason())

        # Environment changed mid-session
        session.invalidate("docker_available")
        ```
    """

    def __init__(
        self,
        registry: PreconditionRegistry,
        session_id: str | None = None,
    ) -> None:
        """Initialize an empty session.

        Args:
            registry: A frozen registry.
            session_id: Identifier bound to log records. Generated if omitted.

        Raises:
            RegistryNotFrozenError: If the registry still accepts registrations.
        """
        if not registry.is_frozen:
            raise RegistryNotFrozenError()
        self._registry = registry
        self.session_id = session_id or uuid.uuid4().hex[:12]
        self._log = logger.bind(session_id=self.session_id)
        # Guards the slot tables only, never held while computing
        self._slots_lock = threading.Lock()
        self._facts: dict[FactKey, _Slot] = {}
        self._decisions: dict[str, _Slot] = {}

    @property
    def registry(self) -> PreconditionRegistry:
        return self._registry

    def _slot(self, table: dict[str, _Slot], key: str) -> _Slot:
        slot = table.get(key)
        if slot is not None:
            return slot
        with self._slots_lock:
            slot = table.get(key)
            if slot is None:
                slot = table[key] = _Slot()
            return slot

    def _memoized(
        self, table: dict[str, _Slot], key: str, compute: Callable[[], T]
    ) -> T:
        slot = self._slot(table, key)
        if not slot.done:
            with slot.lock:
                if not slot.done:
                    try:
                        slot.value = compute()
                    except Exception as e:
                        slot.error = e
                    slot.done = True
        if slot.error is not None:
            raise _replay(slot.error)
        value: T = slot.value
        return value

    # -- facts ---------------------------------------------------------------

    def fact(self, key: FactKey) -> FactValue:
        """Return a fact value, probing it on first use.

        Args:
            key: The fact key.

        Returns:
            The fact value. For providers with the UNSATISFIED policy a probe
            failure yields False.

        Raises:
            UnknownFactError: If no provider is registered for the key.
            ProbeError: If the probe failed under the ERROR policy. The failure
                is cached; the probe is not re-run within the session.
        """
        provider = self._registry.lookup_fact(key)

        def compute() -> FactValue:
            start = time.monotonic()
            try:
                value = provider.compute()
            except ProbeError as e:
                if provider.on_failure is ProbeFailurePolicy.UNSATISFIED:
                    self._log.warning(
                        "fact_probe_failed_treated_as_false",
                        fact=key,
                        error=e.message,
                    )
                    return False
                self._log.debug("fact_probe_failed", fact=key, error=e.message)
                raise _replay(e, fact_key=e.fact_key or key) from e.__cause__
            except Exception as e:
                self._log.exception("fact_provider_raised", fact=key)
                raise ProbeError(
                    f"Fact provider '{key}' raised {type(e).__name__}: {e}",
                    fact_key=key,
                ) from e
            self._log.debug(
                "fact_computed",
                fact=key,
                value=value,
                duration_ms=int((time.monotonic() - start) * 1000),
            )
            return value

        return self._memoized(self._facts, key, compute)

    # -- preconditions -------------------------------------------------------

    def _decide(self, name: str) -> _Decision:
        # Unknown names raise here, before a slot is created for them
        self._registry.lookup(name)
        return self._memoized(
            self._decisions, name, lambda: self._compute_decision(name)
        )

    def _compute_decision(self, name: str) -> _Decision:
        definition = self._registry.lookup(name)
        start = time.monotonic()

        def elapsed() -> int:
            return int((time.monotonic() - start) * 1000)

        for required in definition.requires:
            try:
                satisfied = self._decide(required).satisfied
            except PreconditionEvaluationError as e:
                raise PreconditionEvaluationError(name, e) from e
            if not satisfied:
                self._log.debug(
                    "precondition_unmet_requirement", name=name, required=required
                )
                return _Decision(False, f"requires {required}", elapsed())

        values: dict[FactKey, FactValue] = {}
        for key in definition.facts:
            try:
                values[key] = self.fact(key)
            except ProbeError as e:
                raise PreconditionEvaluationError(name, e) from e

        try:
            satisfied = bool(definition.predicate(MappingProxyType(values)))
        except Exception as e:
            raise PreconditionEvaluationError(name, e) from e

        reason = ", ".join(f"{key}={value!r}" for key, value in values.items())
        self._log.debug("precondition_evaluated", name=name, satisfied=satisfied)
        return _Decision(satisfied, reason, elapsed())

    def evaluate(self, name: str) -> bool:
        """Return whether a precondition holds, computing it on first use.

        Required preconditions are evaluated first; if one is unsatisfied the
        result is False and this definition's facts are not probed.

        Args:
            name: The precondition name.

        Returns:
            True if the precondition holds.

        Raises:
            UnknownPreconditionError: If the name is not registered.
            PreconditionEvaluationError: If a probe failed under the ERROR
                policy or the predicate raised. The failure is cached.
        """
        return self._decide(name).satisfied

    def explain(self, name: str) -> Evaluation:
        """Evaluate a precondition, capturing evaluation errors in the result.

        Args:
            name: The precondition name.

        Returns:
            An Evaluation; ``satisfied`` is None if evaluation failed.

        Raises:
            UnknownPreconditionError: If the name is not registered.
        """
        try:
            decision = self._decide(name)
        except PreconditionEvaluationError as e:
            return Evaluation(name=name, satisfied=None, error=e.message)
        return Evaluation(
            name=name,
            satisfied=decision.satisfied,
            reason=decision.reason,
            duration_ms=decision.duration_ms,
        )

    def cached(self) -> dict[str, bool | None]:
        """Preconditions evaluated so far; None marks an evaluation error."""
        with self._slots_lock:
            slots = {name: slot for name, slot in self._decisions.items() if slot.done}
        result: dict[str, bool | None] = {}
        for name in self._registry.list_all():
            slot = slots.get(name)
            if slot is None:
                continue
            result[name] = None if slot.error is not None else slot.value.satisfied
        return result

    # -- invalidation --------------------------------------------------------

    def invalidate(self, key: FactKey) -> tuple[str, ...]:
        """Drop a cached fact and every result that depended on it.

        The next query re-probes the fact and re-evaluates only the dropped
        preconditions.

        Args:
            key: The fact key.

        Returns:
            Names of the preconditions whose cached results were dropped.

        Raises:
            UnknownFactError: If the key is not registered.
        """
        dependents = self._registry.dependents_of_fact(key)
        with self._slots_lock:
            self._facts.pop(key, None)
            dropped = tuple(
                name for name in dependents if self._decisions.pop(name, None)
            )
        self._log.debug("fact_invalidated", fact=key, dropped=dropped)
        return dropped

    def clear(self) -> None:
        """Drop every cached fact and result."""
        with self._slots_lock:
            self._facts.clear()
            self._decisions.clear()
