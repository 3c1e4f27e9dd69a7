"""Fact providers and the probes they are built on.

Components:
- probes: bounded subprocess and network probes raising ProbeError
- builtins: the built-in fact and precondition catalog
"""

from __future__ import annotations

from preconditions.facts.builtins import BUILTIN_CONTRIBUTOR, builtin_contributor
from preconditions.facts.probes import ProbeResult, run_probe, tcp_connect, which

__all__ = [
    "BUILTIN_CONTRIBUTOR",
    "builtin_contributor",
    "ProbeResult",
    "run_probe",
    "tcp_connect",
    "which",
]
