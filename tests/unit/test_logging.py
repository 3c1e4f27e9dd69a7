"""Tests for the preconditions.logging module."""

from __future__ import annotations

import io
import json
import logging
import os
from unittest.mock import patch

import pytest
import structlog

from preconditions.logging import (
    bind_context,
    clear_context,
    configure_logging,
    evaluation_context,
    get_logger,
    verbosity_level,
)
from preconditions.registry import PreconditionRegistry
from preconditions.session import EvaluationSession


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_default_level_is_warning(self) -> None:
        """Test that the default level keeps evaluation chatter quiet."""
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("PRECONDITIONS_LOG_LEVEL", None)
            configure_logging()

        assert logging.getLogger().level == logging.WARNING

    def test_custom_level(self) -> None:
        configure_logging(level=logging.DEBUG)

        root_logger = logging.getLogger()
        assert root_logger.level == logging.DEBUG
        assert all(h.level == logging.DEBUG for h in root_logger.handlers)

    def test_level_from_env(self) -> None:
        """Test log level from PRECONDITIONS_LOG_LEVEL env var."""
        with patch.dict(os.environ, {"PRECONDITIONS_LOG_LEVEL": "info"}):
            configure_logging()

        assert logging.getLogger().level == logging.INFO

    def test_unknown_level_falls_back_to_warning(self) -> None:
        with patch.dict(os.environ, {"PRECONDITIONS_LOG_LEVEL": "chatty"}):
            configure_logging()

        assert logging.getLogger().level == logging.WARNING

    def test_reconfigure_replaces_handlers(self) -> None:
        """Test that repeated calls do not stack handlers."""
        configure_logging()
        configure_logging(json_output=True)

        assert len(logging.getLogger().handlers) == 1

    def test_json_via_env(self) -> None:
        """Test JSON logging when PRECONDITIONS_LOG_FORMAT=json."""
        with patch.dict(os.environ, {"PRECONDITIONS_LOG_FORMAT": "json"}):
            configure_logging()

            log = get_logger("test.json")
            # Should not raise
            log.warning("test_message", key="value")

    def test_json_lines_to_stream(self) -> None:
        stream = io.StringIO()
        configure_logging(level=logging.INFO, json_output=True, stream=stream)

        get_logger("test.stream").info("report_completed", satisfied=3)

        record = json.loads(stream.getvalue().splitlines()[-1])
        assert record["event"] == "report_completed"
        assert record["satisfied"] == 3
        assert record["level"] == "info"


class TestVerbosityLevel:
    """Tests for mapping CLI flags and configured verbosity to levels."""

    @pytest.mark.parametrize(
        ("verbose", "quiet", "configured", "expected"),
        [
            (0, False, "", logging.WARNING),
            (0, False, "debug", logging.DEBUG),
            (0, False, "ERROR", logging.ERROR),
            (0, False, "chatty", logging.WARNING),
            (1, False, "error", logging.INFO),
            (3, False, "", logging.DEBUG),
            (2, True, "debug", logging.ERROR),
        ],
    )
    def test_priority(
        self, verbose: int, quiet: bool, configured: str, expected: int
    ) -> None:
        assert verbosity_level(verbose, quiet, configured) == expected


class TestContextBinding:
    """Tests for context binding functions."""

    def test_bind_context(self) -> None:
        clear_context()

        bind_context(session_id="a1b2c3", precondition="HAS_DOCKER")

        ctx = structlog.contextvars.get_contextvars()
        assert ctx["session_id"] == "a1b2c3"
        assert ctx["precondition"] == "HAS_DOCKER"
        clear_context()

    def test_clear_context(self) -> None:
        bind_context(session_id="a1b2c3")
        clear_context()

        assert structlog.contextvars.get_contextvars() == {}

    def test_evaluation_context_unbinds_on_exit(self) -> None:
        clear_context()
        bind_context(session_id="a1b2c3")

        with evaluation_context(command="check"):
            assert structlog.contextvars.get_contextvars() == {
                "session_id": "a1b2c3",
                "command": "check",
            }

        assert structlog.contextvars.get_contextvars() == {"session_id": "a1b2c3"}
        clear_context()

    def test_evaluation_context_unbinds_on_error(self) -> None:
        clear_context()

        with pytest.raises(RuntimeError), evaluation_context(test="t::x"):
            raise RuntimeError("probe crashed")

        assert structlog.contextvars.get_contextvars() == {}


class TestEvaluationLogging:
    """Tests for records emitted while evaluating."""

    def test_fail_safe_probe_logs_warning(
        self,
        sample_registry: PreconditionRegistry,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        session = EvaluationSession(sample_registry, session_id="s-1")

        with caplog.at_level(logging.WARNING):
            assert session.evaluate("ONLINE") is False

        assert "fact_probe_failed_treated_as_false" in caplog.text
        assert "network_probe" in caplog.text
        assert "s-1" in caplog.text
