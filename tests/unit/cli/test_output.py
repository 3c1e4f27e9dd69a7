"""Tests for CLI output formatting."""

from __future__ import annotations

import json
from pathlib import Path

from preconditions.cli.output import describe_error, format_error, format_json
from preconditions.exceptions import (
    ConfigError,
    DiscoveryError,
    PreconditionEvaluationError,
    ProbeError,
)


def test_format_error_message_only() -> None:
    assert format_error("Something failed") == "Error: Something failed"


def test_format_error_with_details_and_suggestion() -> None:
    result = format_error(
        "Unknown precondition 'HAS_GPU'",
        details=["Available: HAS_DOCKER"],
        suggestion="Run 'preconditions list'",
    )

    assert result.splitlines() == [
        "Error: Unknown precondition 'HAS_GPU'",
        "  Available: HAS_DOCKER",
        "Suggestion: Run 'preconditions list'",
    ]


def test_describe_error_follows_cause_chain() -> None:
    probe = ProbeError("'nvidia-smi' exited with 9")
    try:
        try:
            raise probe
        except ProbeError as e:
            raise PreconditionEvaluationError("HAS_GPU", e) from e
    except PreconditionEvaluationError as error:
        text = describe_error(error)

    assert text.splitlines() == [
        "Error: Cannot evaluate precondition 'HAS_GPU': 'nvidia-smi' exited with 9",
        "  Caused by: ProbeError: 'nvidia-smi' exited with 9",
    ]


def test_describe_error_without_cause() -> None:
    error = DiscoveryError("Contributor 'x' is not callable", contributor="x")

    assert describe_error(error) == "Error: Contributor 'x' is not callable"


def test_format_json_stringifies_unknown_values() -> None:
    data = json.loads(format_json({"path": Path("/tmp/x"), "count": 2}))

    assert data == {"path": "/tmp/x", "count": 2}


def test_describe_error_includes_config_details() -> None:
    error = ConfigError("Invalid configuration value", field="probe.retries", value=-3)

    assert describe_error(error).splitlines() == [
        "Error: Invalid configuration value",
        "  Field: probe.retries",
        "  Value: -3",
    ]
