"""Settings for discovery and the built-in probes.

Values are merged from, highest priority first:

1. Keyword arguments to ``PreconditionsConfig(...)``
2. ``PRECONDITIONS_*`` environment variables, ``__`` separating nested keys
   (``PRECONDITIONS_PROBE__TIMEOUT_SECONDS=30``)
3. The project file, ``./preconditions.yaml`` or the path given to
   ``load_config``
4. The user file, ``~/.config/preconditions/config.yaml``

Nested sections are merged key by key, so a project file that only sets
``probe.timeout_seconds`` keeps ``probe.network_port`` from the user file.
"""

from __future__ import annotations

from contextvars import ContextVar
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from preconditions.exceptions import ConfigError
from preconditions.logging import get_logger

__all__ = [
    "PreconditionsConfig",
    "ProbeConfig",
    "DiscoveryConfig",
    "load_config",
    "get_user_config_path",
    "PROJECT_CONFIG_NAME",
]

logger = get_logger(__name__)

PROJECT_CONFIG_NAME = "preconditions.yaml"

# Set by load_config for the duration of one PreconditionsConfig() call.
_project_config_path: ContextVar[Path | None] = ContextVar(
    "project_config_path", default=None
)


class ProbeConfig(BaseModel):
    """Bounds and targets for the built-in fact providers.

    Attributes:
        timeout_seconds: Limit for any single subprocess or connection attempt.
        network_host: Host the ``network_access`` fact connects to.
        network_port: Port the ``network_access`` fact connects to.
        network_retries: Extra connection attempts before giving up.
    """

    timeout_seconds: float = Field(default=10.0, gt=0.0, le=300.0)
    network_host: str = "repo.maven.apache.org"
    network_port: int = Field(default=443, gt=0, le=65535)
    network_retries: int = Field(default=1, ge=0, le=10)


class DiscoveryConfig(BaseModel):
    """Which contributors populate the registry.

    Example preconditions.yaml:
        discovery:
          entry_points: false
          contributors:
            - "myproject.testing.preconditions:contribute"
    """

    builtins: bool = True
    entry_points: bool = True
    contributors: list[str] = Field(default_factory=list)

    @field_validator("contributors")
    @classmethod
    def check_references(cls, v: list[str]) -> list[str]:
        for reference in v:
            module, sep, attr = reference.partition(":")
            if not (sep and module and attr):
                raise ValueError(
                    f"Contributor '{reference}' must look like 'module.path:function'"
                )
        return v


def _read_yaml_mapping(path: Path) -> dict[str, Any]:
    try:
        with open(path) as f:
            loaded = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if loaded is None:
        logger.warning("config_file_empty", path=str(path))
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"Config file {path} must contain a mapping", value=loaded)
    return loaded


class YamlConfigSource(PydanticBaseSettingsSource):
    """Settings source backed by one YAML file; a missing file contributes nothing."""

    def __init__(self, settings_cls: type[BaseSettings], path: Path) -> None:
        super().__init__(settings_cls)
        self.path = path
        self.data = _read_yaml_mapping(path) if path.is_file() else {}
        if self.data:
            logger.debug("config_file_loaded", path=str(path), keys=sorted(self.data))

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str, bool]:
        return self.data.get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        return self.data


class PreconditionsConfig(BaseSettings):
    """Root settings object shared by the CLI and the pytest plugin."""

    model_config = SettingsConfigDict(
        env_prefix="PRECONDITIONS_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    probe: ProbeConfig = Field(default_factory=ProbeConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    verbosity: Literal["error", "warning", "info", "debug"] = "warning"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        project_path = _project_config_path.get() or Path.cwd() / PROJECT_CONFIG_NAME
        return (
            init_settings,
            env_settings,
            YamlConfigSource(settings_cls, project_path),
            YamlConfigSource(settings_cls, get_user_config_path()),
        )


def get_user_config_path() -> Path:
    return Path.home() / ".config" / "preconditions" / "config.yaml"


def load_config(config_path: Path | None = None) -> PreconditionsConfig:
    """Build the merged configuration.

    Args:
        config_path: Project file to read instead of ./preconditions.yaml.
            A path that does not exist contributes nothing.

    Raises:
        ConfigError: If a file cannot be parsed or a value fails validation.
            ``field`` and ``value`` describe the first validation failure.
    """
    token = _project_config_path.set(config_path)
    try:
        return PreconditionsConfig()
    except ValidationError as e:
        first = e.errors()[0]
        raise ConfigError(
            f"Invalid configuration: {first['msg']}",
            field=".".join(str(part) for part in first["loc"]),
            value=first.get("input"),
        ) from e
    finally:
        _project_config_path.reset(token)
