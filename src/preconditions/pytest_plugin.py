"""pytest integration: skip tests whose preconditions do not hold.

Enable with ``-p preconditions.pytest_plugin`` or
``pytest_plugins = ["preconditions.pytest_plugin"]`` in a conftest, then mark
tests:

    @pytest.mark.requires("UNIX", "JDK11_OR_LATER")
    def test_toolchain_switch(): ...

Discovery runs once when the test session starts; a misconfigured registry
aborts the run. Each pytest session is one evaluation session, so facts are
always probed afresh per run.

ini options:
    preconditions_contributors: extra "module.path:function" contributors
    preconditions_builtins: register the built-in catalog (default true)
    preconditions_on_error: "skip" (default) or "fail" when a precondition
        cannot be evaluated
"""

from __future__ import annotations

from pathlib import Path

import pytest

from preconditions.api import Preconditions
from preconditions.config import load_config
from preconditions.discovery import load_registry
from preconditions.exceptions import PreconditionsError, UnknownPreconditionError
from preconditions.logging import evaluation_context, get_logger

__all__ = ["MARKER", "ON_ERROR_CHOICES"]

logger = get_logger(__name__)

MARKER = "requires"

ON_ERROR_CHOICES = ("skip", "fail")

_preconditions_key = pytest.StashKey[Preconditions]()

# Set during setup; the test then fails in its call phase.
_failure_key = pytest.StashKey[str]()


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("preconditions")
    group.addoption(
        "--preconditions-config",
        dest="preconditions_config",
        default=None,
        help="Path to preconditions.yaml (default: ./preconditions.yaml).",
    )
    parser.addini(
        "preconditions_contributors",
        type="linelist",
        default=[],
        help="Extra precondition contributors as 'module.path:function'.",
    )
    parser.addini(
        "preconditions_builtins",
        type="bool",
        default=True,
        help="Register the built-in facts and preconditions.",
    )
    parser.addini(
        "preconditions_on_error",
        default="skip",
        help="'skip' or 'fail' tests whose preconditions cannot be evaluated.",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        f"{MARKER}(*names): skip the test unless every named precondition holds",
    )
    on_error = config.getini("preconditions_on_error")
    if on_error not in ON_ERROR_CHOICES:
        raise pytest.UsageError(
            f"preconditions_on_error must be one of {', '.join(ON_ERROR_CHOICES)}, "
            f"got '{on_error}'"
        )


def pytest_sessionstart(session: pytest.Session) -> None:
    config = session.config
    config_file = config.getoption("preconditions_config")
    try:
        settings = load_config(Path(config_file) if config_file else None)
        settings.discovery.contributors.extend(
            config.getini("preconditions_contributors")
        )
        if not config.getini("preconditions_builtins"):
            settings.discovery.builtins = False
        registry = load_registry(settings)
    except PreconditionsError as e:
        raise pytest.UsageError(f"Precondition discovery failed: {e.message}") from e
    config.stash[_preconditions_key] = Preconditions(registry)


def _required_names(item: pytest.Item) -> list[str]:
    names: dict[str, None] = {}
    for mark in item.iter_markers(name=MARKER):
        for name in mark.args:
            names[name] = None
    return list(names)


def pytest_runtest_setup(item: pytest.Item) -> None:
    names = _required_names(item)
    if not names:
        return

    preconditions = item.config.stash[_preconditions_key]
    try:
        with evaluation_context(test=item.nodeid):
            failing = preconditions.unsatisfied(names)
    except UnknownPreconditionError as e:
        item.stash[_failure_key] = e.message
        return

    if not failing:
        return

    reason = "; ".join(evaluation.format_skip_reason() for evaluation in failing)
    errored = [evaluation for evaluation in failing if evaluation.errored]
    if errored and item.config.getini("preconditions_on_error") == "fail":
        item.stash[_failure_key] = reason
        return
    logger.debug("test_skipped_for_preconditions", test=item.nodeid, reason=reason)
    pytest.skip(reason)


@pytest.hookimpl(tryfirst=True)
def pytest_runtest_call(item: pytest.Item) -> None:
    failure = item.stash.get(_failure_key, None)
    if failure is not None:
        pytest.fail(failure, pytrace=False)


def pytest_terminal_summary(
    terminalreporter: pytest.TerminalReporter,
    exitstatus: int,
    config: pytest.Config,
) -> None:
    preconditions = config.stash.get(_preconditions_key, None)
    if preconditions is None:
        return
    evaluated = preconditions.session.cached()
    if not evaluated:
        return

    terminalreporter.section("preconditions")
    for name, satisfied in evaluated.items():
        status = "error" if satisfied is None else ("yes" if satisfied else "no")
        terminalreporter.write_line(f"{name}: {status}")
