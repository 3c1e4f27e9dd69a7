"""Bounded probes used by fact providers.

Every probe applies its own timeout and reports failure as ProbeError, so a
hung subprocess or an unresponsive host can never stall an evaluation session.
"""

from __future__ import annotations

import os
import shutil
import socket
import subprocess
import time
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from preconditions.exceptions import ProbeError, ProbeTimeoutError
from preconditions.logging import get_logger

__all__ = [
    "ProbeResult",
    "DEFAULT_PROBE_TIMEOUT",
    "run_probe",
    "which",
    "tcp_connect",
]

logger = get_logger(__name__)

DEFAULT_PROBE_TIMEOUT: float = 10.0


@dataclass(frozen=True, slots=True)
class ProbeResult:
    """Result of running a probe command.

    Attributes:
        command: The command that was run.
        returncode: Exit code (0 = success).
        stdout: Captured standard output.
        stderr: Captured standard error.
        duration_ms: Execution time in milliseconds.
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str
    duration_ms: int

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Combined stdout and stderr; some tools (java -version) use stderr."""
        if self.stderr:
            return f"{self.stdout}\n{self.stderr}" if self.stdout else self.stderr
        return self.stdout

    def check(self) -> ProbeResult:
        """Return self, or raise ProbeError for a non-zero exit.

        Raises:
            ProbeError: If the command exited non-zero.
        """
        if not self.success:
            detail = self.stderr.strip().splitlines()[-1:] or [""]
            raise ProbeError(
                f"'{' '.join(self.command)}' exited with {self.returncode}"
                + (f": {detail[0]}" if detail[0] else ""),
                command=self.command,
            )
        return self


def run_probe(
    command: Sequence[str],
    *,
    timeout: float = DEFAULT_PROBE_TIMEOUT,
    env: dict[str, str] | None = None,
    cwd: Path | None = None,
) -> ProbeResult:
    """Run a command with a bounded timeout and capture its output.

    A non-zero exit is reported in the result, not raised; call
    ``ProbeResult.check()`` when a failure should abort the probe.

    Args:
        command: Command and arguments (no shell expansion).
        timeout: Seconds before the command is killed.
        env: Additional environment variables merged over os.environ.
        cwd: Working directory.

    Returns:
        ProbeResult with returncode, stdout, stderr and duration_ms.

    Raises:
        ProbeError: If the executable cannot be started.
        ProbeTimeoutError: If the command exceeds ``timeout``.

    Example:
        >>> result = run_probe(["docker", "info"], timeout=5.0)
        >>> result.success
        True
    """
    argv = tuple(command)
    effective_env = None
    if env:
        effective_env = os.environ.copy()
        effective_env.update(env)

    start = time.monotonic()
    try:
        completed = subprocess.run(
            argv,
            capture_output=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            env=effective_env,
            cwd=cwd,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        raise ProbeTimeoutError(
            f"'{' '.join(argv)}' timed out after {timeout}s",
            timeout_seconds=timeout,
            command=argv,
        ) from e
    except FileNotFoundError as e:
        raise ProbeError(f"Executable not found: {argv[0]}", command=argv) from e
    except OSError as e:
        raise ProbeError(f"Cannot run '{argv[0]}': {e}", command=argv) from e

    duration_ms = int((time.monotonic() - start) * 1000)
    logger.debug(
        "probe_completed",
        command=" ".join(argv),
        returncode=completed.returncode,
        duration_ms=duration_ms,
    )
    return ProbeResult(
        command=argv,
        returncode=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
        duration_ms=duration_ms,
    )


def which(executable: str) -> str | None:
    """Locate an executable on PATH."""
    return shutil.which(executable)


def tcp_connect(
    host: str,
    port: int,
    *,
    timeout: float = DEFAULT_PROBE_TIMEOUT,
    retries: int = 0,
    retry_delay: float = 0.5,
) -> float:
    """Open and close a TCP connection, retrying transient failures.

    Args:
        host: Host name or address.
        port: TCP port.
        timeout: Seconds allowed per connection attempt.
        retries: Extra attempts after the first failure.
        retry_delay: Initial delay between attempts, doubled each retry.

    Returns:
        Milliseconds taken by the successful attempt.

    Raises:
        ProbeTimeoutError: If the last attempt timed out.
        ProbeError: If the last attempt failed for any other reason.
    """

    def attempt() -> float:
        start = time.monotonic()
        with socket.create_connection((host, port), timeout=timeout):
            pass
        return (time.monotonic() - start) * 1000

    try:
        for retrying in Retrying(
            stop=stop_after_attempt(retries + 1),
            wait=wait_exponential(multiplier=retry_delay, min=retry_delay, max=5),
            retry=retry_if_exception_type(OSError),
            reraise=True,
        ):
            with retrying:
                return attempt()
    except TimeoutError as e:
        raise ProbeTimeoutError(
            f"Connection to {host}:{port} timed out after {timeout}s",
            timeout_seconds=timeout,
        ) from e
    except OSError as e:
        raise ProbeError(f"Cannot connect to {host}:{port}: {e}") from e
    raise AssertionError("unreachable")  # pragma: no cover
