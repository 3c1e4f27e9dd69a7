"""Built-in environment facts and preconditions.

Fact Catalog:
- os_name: "linux", "macos", "windows", or sys.platform for anything else
- cpu_arch: Machine architecture, lowercased (e.g. "x86_64", "arm64")
- python_version: Running interpreter version as a tuple of ints
- java_version: Major version of the JDK on JAVA_HOME or PATH, None if absent
- docker_available: `docker info` succeeds
- network_access: A TCP connection to the configured host succeeds
- git_available: Git is on PATH
- ci_environment: The CI environment variable is set to a truthy value

Precondition Catalog:
- LINUX, MAC_OS, WINDOWS, UNIX
- JDK_AVAILABLE, JDK11_OR_LATER, JDK17_OR_LATER
- HAS_DOCKER, ONLINE, HAS_GIT
- CI_SERVER, NOT_CI_SERVER
"""

from __future__ import annotations

import os
import platform
import re
import sys
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from preconditions.config import ProbeConfig
from preconditions.exceptions import ProbeError
from preconditions.facts.probes import run_probe, tcp_connect, which
from preconditions.models import ProbeFailurePolicy
from preconditions.registry import PreconditionRegistry

__all__ = [
    "BUILTIN_CONTRIBUTOR",
    "builtin_contributor",
    "detect_os_name",
    "find_java_executable",
    "parse_java_version",
]

BUILTIN_CONTRIBUTOR = "builtin"

_JAVA_VERSION_PATTERN = re.compile(r'version "(\d+)(?:\.(\d+))?[^"]*"')

_TRUTHY = {"1", "true", "yes", "on"}


def detect_os_name(sys_platform: str | None = None) -> str:
    """Normalize sys.platform to "linux", "macos" or "windows"."""
    value = sys_platform if sys_platform is not None else sys.platform
    if value.startswith("linux"):
        return "linux"
    if value == "darwin":
        return "macos"
    if value in ("win32", "cygwin"):
        return "windows"
    return value


def parse_java_version(output: str) -> int | None:
    """Extract the major version from `java -version` output.

    Legacy "1.x" versions map to x, so "1.8.0_292" is 8.

    Args:
        output: Combined stdout/stderr of `java -version`.

    Returns:
        The major version, or None if the output has no version string.
    """
    match = _JAVA_VERSION_PATTERN.search(output)
    if match is None:
        return None
    major = int(match.group(1))
    if major == 1 and match.group(2) is not None:
        return int(match.group(2))
    return major


def find_java_executable(environ: Mapping[str, str] | None = None) -> str | None:
    """Locate java, preferring JAVA_HOME over PATH."""
    env = os.environ if environ is None else environ
    java_home = env.get("JAVA_HOME")
    if java_home:
        name = "java.exe" if detect_os_name() == "windows" else "java"
        candidate = Path(java_home) / "bin" / name
        if candidate.is_file():
            return str(candidate)
    return which("java")


def builtin_contributor(
    probe: ProbeConfig | None = None,
) -> Callable[[PreconditionRegistry], None]:
    """Build the contributor registering the built-in catalog.

    Args:
        probe: Probe settings (timeouts, network target).

    Returns:
        A contributor callable for the discovery phase.
    """
    settings = probe or ProbeConfig()

    def contribute(registry: PreconditionRegistry) -> None:
        _register_facts(registry, settings)
        _register_preconditions(registry)

    return contribute


def _register_facts(registry: PreconditionRegistry, settings: ProbeConfig) -> None:
    @registry.fact("os_name")
    def os_name() -> str:
        """Normalized operating system name."""
        return detect_os_name()

    @registry.fact("cpu_arch")
    def cpu_arch() -> str:
        """Machine architecture."""
        return platform.machine().lower()

    @registry.fact("python_version")
    def python_version() -> tuple[int, ...]:
        """Running interpreter version."""
        return tuple(sys.version_info[:3])

    @registry.fact("java_version")
    def java_version() -> int | None:
        """Major version of the JDK on JAVA_HOME or PATH."""
        java = find_java_executable()
        if java is None:
            return None
        result = run_probe([java, "-version"], timeout=settings.timeout_seconds)
        result.check()
        version = parse_java_version(result.output)
        if version is None:
            raise ProbeError(
                f"Cannot parse Java version from: {result.output.strip()[:200]}",
                command=result.command,
            )
        return version

    @registry.fact(
        "docker_available",
        on_failure=ProbeFailurePolicy.UNSATISFIED,
    )
    def docker_available() -> bool:
        """The Docker daemon answers `docker info`."""
        docker = which("docker")
        if docker is None:
            return False
        return run_probe([docker, "info"], timeout=settings.timeout_seconds).success

    @registry.fact(
        "network_access",
        on_failure=ProbeFailurePolicy.UNSATISFIED,
    )
    def network_access() -> bool:
        """A TCP connection to the configured host succeeds."""
        tcp_connect(
            settings.network_host,
            settings.network_port,
            timeout=settings.timeout_seconds,
            retries=settings.network_retries,
        )
        return True

    @registry.fact("git_available")
    def git_available() -> bool:
        """Git is on PATH."""
        return which("git") is not None

    @registry.fact("ci_environment")
    def ci_environment() -> bool:
        """The CI environment variable is truthy."""
        return os.environ.get("CI", "").strip().lower() in _TRUTHY


def _register_preconditions(registry: PreconditionRegistry) -> None:
    def os_is(*names: str) -> Callable[[Mapping[str, Any]], bool]:
        return lambda facts: facts["os_name"] in names

    registry.register(
        "LINUX", os_is("linux"), facts=("os_name",), description="Running on Linux"
    )
    registry.register(
        "MAC_OS", os_is("macos"), facts=("os_name",), description="Running on macOS"
    )
    registry.register(
        "WINDOWS",
        os_is("windows"),
        facts=("os_name",),
        description="Running on Windows",
    )
    registry.register(
        "UNIX",
        lambda facts: facts["os_name"] != "windows",
        facts=("os_name",),
        description="Running on a Unix-like operating system",
    )

    registry.register(
        "JDK_AVAILABLE",
        lambda facts: facts["java_version"] is not None,
        facts=("java_version",),
        description="A JDK is installed",
        remediation="Install a JDK and set JAVA_HOME or put java on PATH",
    )
    registry.register(
        "JDK11_OR_LATER",
        lambda facts: facts["java_version"] >= 11,
        facts=("java_version",),
        requires=("JDK_AVAILABLE",),
        description="The JDK is version 11 or later",
        remediation="Point JAVA_HOME at a JDK 11+ installation",
    )
    registry.register(
        "JDK17_OR_LATER",
        lambda facts: facts["java_version"] >= 17,
        facts=("java_version",),
        requires=("JDK_AVAILABLE",),
        description="The JDK is version 17 or later",
        remediation="Point JAVA_HOME at a JDK 17+ installation",
    )

    registry.register(
        "HAS_DOCKER",
        lambda facts: facts["docker_available"],
        facts=("docker_available",),
        description="A Docker daemon is available",
        remediation="Install Docker and start the daemon",
    )
    registry.register(
        "ONLINE",
        lambda facts: facts["network_access"],
        facts=("network_access",),
        description="The network is reachable",
        remediation="Check network connectivity or proxy settings",
    )
    registry.register(
        "HAS_GIT",
        lambda facts: facts["git_available"],
        facts=("git_available",),
        description="Git is installed",
        remediation="Install Git from https://git-scm.com/",
    )

    registry.register(
        "CI_SERVER",
        lambda facts: facts["ci_environment"],
        facts=("ci_environment",),
        description="Running on a CI server",
    )
    registry.register(
        "NOT_CI_SERVER",
        lambda facts: not facts["ci_environment"],
        facts=("ci_environment",),
        description="Running outside CI",
    )
