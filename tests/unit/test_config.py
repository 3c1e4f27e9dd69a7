from __future__ import annotations

from pathlib import Path

import pytest

from preconditions.config import (
    DiscoveryConfig,
    PreconditionsConfig,
    get_user_config_path,
    load_config,
)
from preconditions.exceptions import ConfigError


def test_load_defaults_when_no_config(isolated_config: Path) -> None:
    """Test that defaults are used when no config file exists."""
    config = load_config()

    assert isinstance(config, PreconditionsConfig)
    assert config.probe.timeout_seconds == 10.0
    assert config.probe.network_host == "repo.maven.apache.org"
    assert config.probe.network_port == 443
    assert config.discovery.builtins is True
    assert config.discovery.entry_points is True
    assert config.discovery.contributors == []
    assert config.verbosity == "warning"


def test_load_project_config(isolated_config: Path) -> None:
    """Test loading configuration from preconditions.yaml."""
    (isolated_config / "preconditions.yaml").write_text(
        """
probe:
  timeout_seconds: 2.5
  network_host: "mirror.example.com"
discovery:
  entry_points: false
  contributors:
    - "myproject.testing:contribute"
verbosity: info
"""
    )

    config = load_config()

    assert config.probe.timeout_seconds == 2.5
    assert config.probe.network_host == "mirror.example.com"
    assert config.discovery.entry_points is False
    assert config.discovery.contributors == ["myproject.testing:contribute"]
    assert config.verbosity == "info"


def test_explicit_config_path(isolated_config: Path) -> None:
    """Test that --config style paths replace ./preconditions.yaml."""
    (isolated_config / "preconditions.yaml").write_text("verbosity: info\n")
    explicit = isolated_config / "ci.yaml"
    explicit.write_text("verbosity: debug\n")

    assert load_config(explicit).verbosity == "debug"


def test_user_config_is_lower_priority(isolated_config: Path) -> None:
    """Test that the project file overrides ~/.config/preconditions/config.yaml."""
    user_config = get_user_config_path()
    user_config.parent.mkdir(parents=True)
    user_config.write_text(
        """
verbosity: debug
probe:
  network_port: 8443
"""
    )
    (isolated_config / "preconditions.yaml").write_text("verbosity: error\n")

    config = load_config()

    assert config.verbosity == "error"
    assert config.probe.network_port == 8443


def test_env_var_overrides(
    isolated_config: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Test that PRECONDITIONS_* environment variables override config."""
    (isolated_config / "preconditions.yaml").write_text(
        "probe:\n  timeout_seconds: 5\n"
    )
    monkeypatch.setenv("PRECONDITIONS_PROBE__TIMEOUT_SECONDS", "30")
    monkeypatch.setenv("PRECONDITIONS_VERBOSITY", "debug")

    config = load_config()

    assert config.probe.timeout_seconds == 30.0
    assert config.verbosity == "debug"


def test_invalid_config_raises_config_error(isolated_config: Path) -> None:
    """Test that invalid configuration raises ConfigError."""
    (isolated_config / "preconditions.yaml").write_text(
        """
probe:
  timeout_seconds: 900  # Invalid: max is 300
"""
    )

    with pytest.raises(ConfigError) as exc_info:
        load_config()

    assert exc_info.value.field == "probe.timeout_seconds"
    assert exc_info.value.value == 900


def test_malformed_contributor_rejected(isolated_config: Path) -> None:
    (isolated_config / "preconditions.yaml").write_text(
        "discovery:\n  contributors:\n    - not-a-reference\n"
    )

    with pytest.raises(ConfigError, match="module.path:function"):
        load_config()


def test_invalid_yaml_raises_config_error(isolated_config: Path) -> None:
    (isolated_config / "preconditions.yaml").write_text("probe: [unclosed\n")

    with pytest.raises(ConfigError, match="Invalid YAML"):
        load_config()


def test_non_mapping_yaml_raises_config_error(isolated_config: Path) -> None:
    (isolated_config / "preconditions.yaml").write_text("- just\n- a list\n")

    with pytest.raises(ConfigError, match="must contain a mapping"):
        load_config()


def test_empty_yaml_uses_defaults(isolated_config: Path) -> None:
    (isolated_config / "preconditions.yaml").write_text("")

    assert load_config().verbosity == "warning"


def test_unknown_keys_ignored(isolated_config: Path) -> None:
    """Test that unknown configuration keys are ignored."""
    (isolated_config / "preconditions.yaml").write_text(
        """
verbosity: info
unknown_section:
  foo: "bar"
"""
    )

    assert load_config().verbosity == "info"


def test_init_arguments_win(isolated_config: Path) -> None:
    config = PreconditionsConfig(discovery=DiscoveryConfig(builtins=False))

    assert config.discovery.builtins is False
