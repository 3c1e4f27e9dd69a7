"""Registry and evaluator for named environment preconditions.

Contributors register facts (raw environment probes) and preconditions
(named predicates over facts) during a discovery phase; the registry is then
frozen and queried through session-scoped, thread-safe evaluation caches.

Components:
- registry: PreconditionRegistry - catalog of facts and preconditions
- session: EvaluationSession - memoizing, concurrency-safe evaluator
- api: Preconditions - query facade for test-execution hosts
- discovery: load_registry - builds the frozen registry from contributors
- facts: built-in fact providers and bounded probes
- pytest_plugin: `@pytest.mark.requires(...)` skip marker
"""

from __future__ import annotations

from preconditions.api import (
    Preconditions,
    default_preconditions,
    reset_default_preconditions,
)
from preconditions.discovery import load_registry
from preconditions.models import (
    Evaluation,
    FactProvider,
    PreconditionDefinition,
    PreconditionDescription,
    PreconditionReport,
    ProbeFailurePolicy,
)
from preconditions.registry import PreconditionRegistry
from preconditions.session import EvaluationSession

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Models
    "Evaluation",
    "FactProvider",
    "PreconditionDefinition",
    "PreconditionDescription",
    "PreconditionReport",
    "ProbeFailurePolicy",
    # Registry
    "PreconditionRegistry",
    # Session
    "EvaluationSession",
    # Query API
    "Preconditions",
    "default_preconditions",
    "reset_default_preconditions",
    "load_registry",
]
