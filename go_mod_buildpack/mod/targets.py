"""Build target resolution.

Targets come from, in order of precedence:
1. The BP_GO_TARGETS environment variable (colon-separated)
2. The `go.targets` list in `<app_root>/buildpack.yml`
3. Nothing, letting `go install` build the module's default package
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from go_mod_buildpack.config import Settings, get_settings
from go_mod_buildpack.errors import ConfigError

logger = logging.getLogger(__name__)

BUILDPACK_CONFIG_FILENAME = "buildpack.yml"
TARGET_SEPARATOR = ":"


class GoConfig(BaseModel):
    """The `go` section of buildpack.yml."""

    model_config = ConfigDict(extra="ignore")

    targets: list[str] = Field(default_factory=list)

    @field_validator("targets", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v


class BuildpackConfig(BaseModel):
    """Schema for buildpack.yml.

    Sections belonging to other buildpacks are ignored.
    """

    model_config = ConfigDict(extra="ignore")

    go: GoConfig = Field(default_factory=GoConfig)

    @field_validator("go", mode="before")
    @classmethod
    def none_as_default(cls, v: Any) -> Any:
        return {} if v is None else v


def load_buildpack_config(path: Path) -> BuildpackConfig:
    """Load and validate buildpack.yml.

    Args:
        path: Path to the YAML file.

    Returns:
        Validated BuildpackConfig. An empty document yields the defaults.

    Raises:
        ConfigError: If the file cannot be read, is not valid YAML, or
            does not match the schema.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Failed to read {path}: {e}", path=path) from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse {path}: {e}", path=path) from e

    if data is None:
        return BuildpackConfig()
    if not isinstance(data, dict):
        raise ConfigError(
            f"Expected a YAML mapping in {path}, got {type(data).__name__}",
            path=path,
        )

    try:
        return BuildpackConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid {path}: {e}", path=path) from e


def split_targets(value: str) -> tuple[str, ...]:
    """Split a colon-separated target list verbatim."""
    return tuple(value.split(TARGET_SEPARATOR))


def resolve_targets(
    app_root: Path,
    settings: Settings | None = None,
) -> tuple[str, ...]:
    """Determine which targets `go install` should build.

    Args:
        app_root: Application source root.
        settings: Buildpack settings; loaded from the environment if omitted.

    Returns:
        Ordered targets. Empty means the toolchain default target.

    Raises:
        ConfigError: If buildpack.yml exists but cannot be used.
    """
    if settings is None:
        settings = get_settings()

    if settings.go_targets:
        targets = split_targets(settings.go_targets)
        logger.debug("Using targets from BP_GO_TARGETS: %s", targets)
        return targets

    config_path = app_root / BUILDPACK_CONFIG_FILENAME
    if not config_path.exists():
        return ()

    config = load_buildpack_config(config_path)
    targets = tuple(config.go.targets)
    if targets:
        logger.debug("Using targets from %s: %s", config_path, targets)
    return targets


__all__ = [
    "BUILDPACK_CONFIG_FILENAME",
    "BuildpackConfig",
    "GoConfig",
    "load_buildpack_config",
    "resolve_targets",
    "split_targets",
]
