"""Query API consumed by test-execution hosts.

The Preconditions facade pairs a frozen registry with the current evaluation
session. Hosts ask whether preconditions hold, build skip annotations from
the failing ones, and list everything for diagnostics.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Iterable

from preconditions.config import PreconditionsConfig
from preconditions.discovery import load_registry
from preconditions.logging import get_logger
from preconditions.models import (
    Evaluation,
    PreconditionDescription,
    PreconditionReport,
)
from preconditions.registry import PreconditionRegistry
from preconditions.session import EvaluationSession

__all__ = [
    "Preconditions",
    "default_preconditions",
    "reset_default_preconditions",
]

logger = get_logger(__name__)


class Preconditions:
    """Facade over a frozen registry and a session-scoped evaluation cache.

    Example:
        ```python
        preconditions = Preconditions(load_registry())

        if not preconditions.is_satisfied("HAS_DOCKER"):
            ...

        reason = preconditions.skip_reason(["UNIX", "JDK11_OR_LATER"])
        # "requires JDK11_OR_LATER (java_version=8)" or None
        ```
    """

    def __init__(
        self,
        registry: PreconditionRegistry,
        session: EvaluationSession | None = None,
    ) -> None:
        """Initialize the facade.

        Args:
            registry: A frozen registry.
            session: Session to query; a fresh one is started if omitted.

        Raises:
            RegistryNotFrozenError: If the registry is still open.
        """
        self._registry = registry
        self._session = session or EvaluationSession(registry)

    @property
    def registry(self) -> PreconditionRegistry:
        return self._registry

    @property
    def session(self) -> EvaluationSession:
        return self._session

    def new_session(self) -> EvaluationSession:
        """Discard cached results and start a fresh evaluation session."""
        self._session = EvaluationSession(self._registry)
        logger.debug(
            "evaluation_session_started", session_id=self._session.session_id
        )
        return self._session

    def is_satisfied(self, name: str) -> bool:
        """Return whether a precondition holds.

        Raises:
            UnknownPreconditionError: If the name is not registered.
            PreconditionEvaluationError: If it cannot be evaluated.
        """
        return self._session.evaluate(name)

    def explain(self, name: str) -> Evaluation:
        return self._session.explain(name)

    def unsatisfied(self, names: Iterable[str]) -> list[Evaluation]:
        """Evaluate preconditions, returning those that do not hold.

        Evaluations that failed are included with ``satisfied`` set to None.

        Raises:
            UnknownPreconditionError: If a name is not registered.
        """
        evaluations = [self._session.explain(name) for name in names]
        return [e for e in evaluations if e.satisfied is not True]

    def skip_reason(self, names: Iterable[str]) -> str | None:
        """Build a skip annotation for the preconditions that do not hold.

        Returns:
            E.g. "requires HAS_DOCKER (docker_available=False)", or None when
            every precondition holds.
        """
        failing = self.unsatisfied(names)
        if not failing:
            return None
        return "; ".join(e.format_skip_reason() for e in failing)

    def describe_all(self) -> list[PreconditionDescription]:
        """Describe every registered precondition, in registration order."""
        return self._registry.describe_all()

    def report(self) -> PreconditionReport:
        """Evaluate every registered precondition, capturing errors per entry."""
        start = time.monotonic()
        evaluations = tuple(
            self._session.explain(name) for name in self._registry.list_all()
        )
        report = PreconditionReport(
            evaluations=evaluations,
            total_duration_ms=int((time.monotonic() - start) * 1000),
        )
        logger.info(
            "precondition_report_completed",
            satisfied=len(report.satisfied),
            unsatisfied=len(report.unsatisfied),
            errored=len(report.errored),
        )
        return report


_default: Preconditions | None = None
_default_lock = threading.Lock()


def default_preconditions(config: PreconditionsConfig | None = None) -> Preconditions:
    """Return the process-wide facade, running discovery on first use.

    Args:
        config: Configuration used for discovery on first use only.

    Returns:
        The shared Preconditions instance.

    Raises:
        DiscoveryError: If a contributor cannot be loaded or raises.
        RegistryError: If the discovered catalog is invalid.
    """
    global _default
    if _default is None:
        with _default_lock:
            if _default is None:
                _default = Preconditions(load_registry(config))
    return _default


def reset_default_preconditions() -> None:
    """Forget the process-wide facade. Primarily useful for testing."""
    global _default
    with _default_lock:
        _default = None
