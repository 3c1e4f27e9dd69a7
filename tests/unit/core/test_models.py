"""Unit tests for precondition data models."""

from __future__ import annotations

import dataclasses

import pytest

from preconditions.models import (
    Evaluation,
    FactProvider,
    PreconditionDefinition,
    PreconditionReport,
    ProbeFailurePolicy,
)


class TestFactProvider:
    def test_defaults(self) -> None:
        provider = FactProvider(key="os_name", compute=lambda: "linux")

        assert provider.on_failure is ProbeFailurePolicy.ERROR
        assert provider.description == ""

    def test_frozen(self) -> None:
        provider = FactProvider(key="os_name", compute=lambda: "linux")

        with pytest.raises(dataclasses.FrozenInstanceError):
            provider.key = "other"  # type: ignore[misc]

    def test_policy_values(self) -> None:
        assert ProbeFailurePolicy("unsatisfied") is ProbeFailurePolicy.UNSATISFIED
        assert ProbeFailurePolicy.ERROR.value == "error"


class TestPreconditionDefinition:
    def test_describe(self) -> None:
        definition = PreconditionDefinition(
            name="JDK11_OR_LATER",
            predicate=lambda facts: facts["java_version"] >= 11,
            facts=("java_version",),
            requires=("JDK_AVAILABLE",),
            description="Java 11 or newer on PATH",
            remediation="Install a JDK >= 11",
            contributor="builtin",
        )

        description = definition.describe()

        assert description.name == "JDK11_OR_LATER"
        assert description.dependencies == ("JDK_AVAILABLE", "java_version")
        assert description.to_dict() == {
            "name": "JDK11_OR_LATER",
            "facts": ["java_version"],
            "requires": ["JDK_AVAILABLE"],
            "description": "Java 11 or newer on PATH",
            "remediation": "Install a JDK >= 11",
            "contributor": "builtin",
        }


class TestEvaluation:
    """Tests for Evaluation formatting."""

    def test_skip_reason_with_reason(self) -> None:
        evaluation = Evaluation(
            name="HAS_DOCKER", satisfied=False, reason="docker_available=False"
        )

        assert (
            evaluation.format_skip_reason()
            == "requires HAS_DOCKER (docker_available=False)"
        )

    def test_skip_reason_without_reason(self) -> None:
        evaluation = Evaluation(name="ALWAYS_FALSE", satisfied=False)

        assert evaluation.format_skip_reason() == "requires ALWAYS_FALSE"

    def test_skip_reason_uses_error(self) -> None:
        evaluation = Evaluation(
            name="HAS_GPU", satisfied=None, reason="", error="probe timed out"
        )

        assert evaluation.errored
        assert evaluation.format_skip_reason() == "requires HAS_GPU (probe timed out)"

    def test_to_dict(self) -> None:
        evaluation = Evaluation(name="UNIX", satisfied=True, reason="os_name='linux'")

        assert evaluation.to_dict() == {
            "name": "UNIX",
            "satisfied": True,
            "reason": "os_name='linux'",
            "error": None,
            "duration_ms": 0,
        }


class TestPreconditionReport:
    """Tests for PreconditionReport grouping and formatting."""

    @pytest.fixture
    def report(self) -> PreconditionReport:
        return PreconditionReport(
            evaluations=(
                Evaluation(name="UNIX", satisfied=True, reason="os_name='linux'"),
                Evaluation(name="HAS_DOCKER", satisfied=False),
                Evaluation(name="HAS_GPU", satisfied=None, error="nvidia-smi failed"),
            ),
            total_duration_ms=42,
            timestamp=1700000000.0,
        )

    def test_groups(self, report: PreconditionReport) -> None:
        assert [e.name for e in report.satisfied] == ["UNIX"]
        assert [e.name for e in report.unsatisfied] == ["HAS_DOCKER"]
        assert [e.name for e in report.errored] == ["HAS_GPU"]
        assert report.success is False

    def test_success_ignores_unsatisfied(self) -> None:
        report = PreconditionReport(
            evaluations=(Evaluation(name="HAS_DOCKER", satisfied=False),),
            total_duration_ms=1,
        )

        assert report.success is True

    def test_format_text(self, report: PreconditionReport) -> None:
        assert report.format_text() == "\n".join(
            [
                "Preconditions:",
                "  UNIX: yes (os_name='linux')",
                "  HAS_DOCKER: no",
                "  HAS_GPU: ERROR (nvidia-smi failed)",
                "",
                "1 satisfied, 1 unsatisfied, 1 errored in 42ms",
            ]
        )

    def test_to_dict(self, report: PreconditionReport) -> None:
        data = report.to_dict()

        assert data["success"] is False
        assert data["total_duration_ms"] == 42
        assert data["timestamp"] == 1700000000.0
        assert [p["name"] for p in data["preconditions"]] == [
            "UNIX",
            "HAS_DOCKER",
            "HAS_GPU",
        ]
