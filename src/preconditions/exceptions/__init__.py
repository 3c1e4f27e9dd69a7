"""Precondition exception hierarchy.

All exceptions can be imported from this package:
    from preconditions.exceptions import DuplicateNameError, ProbeError
"""

from __future__ import annotations

# Base exception
from preconditions.exceptions.base import PreconditionsError

# Configuration exceptions
from preconditions.exceptions.config import ConfigError

# Discovery exceptions
from preconditions.exceptions.discovery import DiscoveryError

# Evaluation exceptions
from preconditions.exceptions.evaluation import (
    PreconditionEvaluationError,
    ProbeError,
    ProbeTimeoutError,
)

# Registry exceptions
from preconditions.exceptions.registry import (
    CyclicDependencyError,
    DuplicateNameError,
    RegistryError,
    RegistryFrozenError,
    RegistryNotFrozenError,
    UnknownFactError,
    UnknownPreconditionError,
)

__all__ = [
    # Base
    "PreconditionsError",
    # Config
    "ConfigError",
    # Discovery
    "DiscoveryError",
    # Evaluation
    "PreconditionEvaluationError",
    "ProbeError",
    "ProbeTimeoutError",
    # Registry
    "CyclicDependencyError",
    "DuplicateNameError",
    "RegistryError",
    "RegistryFrozenError",
    "RegistryNotFrozenError",
    "UnknownFactError",
    "UnknownPreconditionError",
]
