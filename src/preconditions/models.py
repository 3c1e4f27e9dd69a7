"""Dataclass models for the precondition system.

This module defines the core data structures:
- FactProvider: A probe computing one raw environment fact
- PreconditionDefinition: A named predicate over facts and other preconditions
- PreconditionDescription: Diagnostic view of a registered definition
- Evaluation: The explained outcome of evaluating one precondition
- PreconditionReport: Outcomes for every registered precondition
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

__all__ = [
    "FactKey",
    "FactValue",
    "Predicate",
    "ProbeFailurePolicy",
    "FactProvider",
    "PreconditionDefinition",
    "PreconditionDescription",
    "Evaluation",
    "PreconditionReport",
]

FactKey = str
FactValue = Any
Predicate = Callable[[Mapping[FactKey, FactValue]], bool]


class ProbeFailurePolicy(str, Enum):
    """What a probe failure means for the preconditions built on it.

    Values:
        ERROR: Surface the failure as PreconditionEvaluationError (fail loud).
        UNSATISFIED: Log the failure and treat the fact as False (fail safe).
    """

    ERROR = "error"
    UNSATISFIED = "unsatisfied"


@dataclass(frozen=True, slots=True)
class FactProvider:
    """A probe computing one raw environment fact.

    Attributes:
        key: Unique fact key (e.g., "java_version").
        compute: Zero-argument callable returning the fact value. May raise
            ProbeError; should bound its own subprocess/network timeouts.
        description: Human-readable description for diagnostics.
        on_failure: Policy applied when ``compute`` raises ProbeError.

    Example:
        >>> provider = FactProvider(
        ...     key="docker_available",
        ...     compute=lambda: shutil.which("docker") is not None,
        ...     description="Docker daemon answers 'docker info'",
        ...     on_failure=ProbeFailurePolicy.UNSATISFIED,
        ... )
    """

    key: FactKey
    compute: Callable[[], FactValue]
    description: str = ""
    on_failure: ProbeFailurePolicy = ProbeFailurePolicy.ERROR


@dataclass(frozen=True, slots=True)
class PreconditionDefinition:
    """A named boolean predicate about the execution environment.

    Attributes:
        name: Unique precondition name (e.g., "JDK11_OR_LATER").
        predicate: Side-effect-free callable receiving a read-only mapping of
            the declared facts and returning whether the precondition holds.
        facts: Fact keys the predicate reads.
        requires: Other preconditions that must all be satisfied first.
        description: Human-readable description for diagnostics.
        remediation: User-facing hint for making the precondition hold.
        contributor: Name of the contributor that registered it.

    Example:
        >>> definition = PreconditionDefinition(
        ...     name="JDK11_OR_LATER",
        ...     predicate=lambda facts: facts["java_version"] >= 11,
        ...     facts=("java_version",),
        ...     requires=("JDK_AVAILABLE",),
        ... )
    """

    name: str
    predicate: Predicate
    facts: tuple[FactKey, ...] = ()
    requires: tuple[str, ...] = ()
    description: str = ""
    remediation: str = ""
    contributor: str | None = None

    def describe(self) -> PreconditionDescription:
        """Return the diagnostic view of this definition."""
        return PreconditionDescription(
            name=self.name,
            facts=self.facts,
            requires=self.requires,
            description=self.description,
            remediation=self.remediation,
            contributor=self.contributor,
        )


@dataclass(frozen=True, slots=True)
class PreconditionDescription:
    """Diagnostic view of a registered precondition.

    Attributes:
        name: Precondition name.
        facts: Fact keys it depends on.
        requires: Preconditions it requires.
        description: Human-readable description.
        remediation: Hint for making it hold.
        contributor: Contributor that registered it.
    """

    name: str
    facts: tuple[FactKey, ...]
    requires: tuple[str, ...]
    description: str = ""
    remediation: str = ""
    contributor: str | None = None

    @property
    def dependencies(self) -> tuple[str, ...]:
        """Every fact key and precondition name this one depends on."""
        return self.requires + self.facts

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "facts": list(self.facts),
            "requires": list(self.requires),
            "description": self.description,
            "remediation": self.remediation,
            "contributor": self.contributor,
        }


@dataclass(frozen=True, slots=True)
class Evaluation:
    """The explained outcome of evaluating one precondition.

    Attributes:
        name: Precondition name.
        satisfied: Whether it holds; None when it could not be evaluated.
        reason: Short explanation (fact values or the failed requirement).
        error: The evaluation error message, when ``satisfied`` is None.
        duration_ms: Time spent evaluating, including probes.
    """

    name: str
    satisfied: bool | None
    reason: str = ""
    error: str | None = None
    duration_ms: int = 0

    @property
    def errored(self) -> bool:
        return self.satisfied is None

    def format_skip_reason(self) -> str:
        """Format as a test-skip annotation.

        Returns:
            E.g. "requires HAS_DOCKER (docker_available=False)".
        """
        detail = self.error if self.errored else self.reason
        return f"requires {self.name} ({detail})" if detail else f"requires {self.name}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "satisfied": self.satisfied,
            "reason": self.reason,
            "error": self.error,
            "duration_ms": self.duration_ms,
        }


@dataclass(frozen=True, slots=True)
class PreconditionReport:
    """Outcomes for every registered precondition in one session.

    Attributes:
        evaluations: One Evaluation per precondition, in registration order.
        total_duration_ms: Time spent producing the report.
        timestamp: Unix timestamp when the report completed.
    """

    evaluations: tuple[Evaluation, ...]
    total_duration_ms: int
    timestamp: float = field(default_factory=time.time)

    @property
    def satisfied(self) -> tuple[Evaluation, ...]:
        return tuple(e for e in self.evaluations if e.satisfied is True)

    @property
    def unsatisfied(self) -> tuple[Evaluation, ...]:
        return tuple(e for e in self.evaluations if e.satisfied is False)

    @property
    def errored(self) -> tuple[Evaluation, ...]:
        return tuple(e for e in self.evaluations if e.errored)

    @property
    def success(self) -> bool:
        """True when every precondition could be evaluated."""
        return not self.errored

    def format_text(self) -> str:
        """Format a human-readable summary.

        Returns:
            Multi-line text listing each precondition with its status and
            reason, followed by the totals.
        """
        lines = ["Preconditions:"]
        for evaluation in self.evaluations:
            if evaluation.errored:
                status, detail = "ERROR", evaluation.error
            elif evaluation.satisfied:
                status, detail = "yes", evaluation.reason
            else:
                status, detail = "no", evaluation.reason
            line = f"  {evaluation.name}: {status}"
            if detail:
                line += f" ({detail})"
            lines.append(line)

        lines.append("")
        lines.append(
            f"{len(self.satisfied)} satisfied, {len(self.unsatisfied)} unsatisfied, "
            f"{len(self.errored)} errored in {self.total_duration_ms}ms"
        )
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "total_duration_ms": self.total_duration_ms,
            "timestamp": self.timestamp,
            "preconditions": [e.to_dict() for e in self.evaluations],
        }
