from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from preconditions.api import reset_default_preconditions
from preconditions.logging import clear_context, configure_logging

if TYPE_CHECKING:
    from click.testing import CliRunner

pytest_plugins = [
    "pytester",
    "tests.fixtures.registries",
]


@pytest.fixture(autouse=True)
def quiet_logging() -> Iterator[None]:
    """Log to stderr at WARNING with no context left over from other tests."""
    configure_logging(level=logging.WARNING, json_output=False)
    yield
    clear_context()


@pytest.fixture(autouse=True)
def fresh_default_preconditions() -> Iterator[None]:
    reset_default_preconditions()
    yield
    reset_default_preconditions()


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Drop every PRECONDITIONS_* variable; monkeypatch restores them after."""
    for key in list(os.environ):
        if key.startswith("PRECONDITIONS_"):
            monkeypatch.delenv(key)


@pytest.fixture
def isolated_config(
    clean_env: None, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Path:
    """An empty working directory and an empty home; returns the directory.

    ``~/.config/preconditions/config.yaml`` resolves under ``tmp_path/home``,
    so the developer's own user config never leaks into a test.
    """
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(Path, "home", lambda: tmp_path / "home")
    return tmp_path


@pytest.fixture
def cli_runner() -> CliRunner:
    from click.testing import CliRunner

    return CliRunner()
