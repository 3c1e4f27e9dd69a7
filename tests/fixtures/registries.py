"""Registry fixtures and fact providers that count their invocations.

Provides:
- CountingProbe: a fact provider callable recording how often it ran
- counting_probe: factory fixture for CountingProbe
- sample_registry: a frozen registry modelled on a Docker/JDK environment
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Any

import pytest

from preconditions.exceptions import ProbeError
from preconditions.models import FactProvider, ProbeFailurePolicy
from preconditions.registry import PreconditionRegistry


class CountingProbe:
    """Fact provider returning a fixed value (or raising) and counting calls."""

    def __init__(
        self,
        value: Any = True,
        *,
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.value = value
        self.error = error
        self.delay = delay
        self.calls = 0
        self._lock = threading.Lock()

    def __call__(self) -> Any:
        with self._lock:
            self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.value


@pytest.fixture
def counting_probe() -> Callable[..., CountingProbe]:
    """Factory fixture creating CountingProbe instances."""
    return CountingProbe


@pytest.fixture
def sample_probes() -> dict[str, CountingProbe]:
    """Probes backing ``sample_registry``, keyed by fact key."""
    return {
        "docker_probe": CountingProbe(True),
        "java_version": CountingProbe(17),
        "gpu_probe": CountingProbe(error=ProbeError("nvidia-smi exited with 9")),
        "network_probe": CountingProbe(error=ProbeError("connection refused")),
    }


@pytest.fixture
def sample_registry(sample_probes: dict[str, CountingProbe]) -> PreconditionRegistry:
    """A frozen registry with a small, realistic catalog.

    - HAS_DOCKER: docker_probe is True
    - JDK_AVAILABLE: java_version is not None
    - JDK11_OR_LATER: requires JDK_AVAILABLE, java_version >= 11
    - JDK21_OR_LATER: requires JDK_AVAILABLE, java_version >= 21
    - HAS_GPU: gpu_probe (raises ProbeError, ERROR policy)
    - ONLINE: network_probe (raises ProbeError, UNSATISFIED policy)
    """
    registry = PreconditionRegistry()
    for key, probe in sample_probes.items():
        policy = (
            ProbeFailurePolicy.UNSATISFIED
            if key == "network_probe"
            else ProbeFailurePolicy.ERROR
        )
        registry.register_fact(FactProvider(key=key, compute=probe, on_failure=policy))

    registry.register(
        "HAS_DOCKER", lambda facts: facts["docker_probe"], facts=("docker_probe",)
    )
    registry.register(
        "JDK_AVAILABLE",
        lambda facts: facts["java_version"] is not None,
        facts=("java_version",),
    )
    registry.register(
        "JDK11_OR_LATER",
        lambda facts: facts["java_version"] >= 11,
        facts=("java_version",),
        requires=("JDK_AVAILABLE",),
    )
    registry.register(
        "JDK21_OR_LATER",
        lambda facts: facts["java_version"] >= 21,
        facts=("java_version",),
        requires=("JDK_AVAILABLE",),
    )
    registry.register("HAS_GPU", lambda facts: facts["gpu_probe"], facts=("gpu_probe",))
    registry.register(
        "ONLINE", lambda facts: facts["network_probe"], facts=("network_probe",)
    )
    registry.freeze()
    return registry
