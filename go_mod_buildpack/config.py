"""Configuration settings for go_mod_buildpack.

Uses pydantic-settings for config parsing from environment variables
and defaults. Configuration precedence: CLI flags > env vars > defaults.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Buildpack settings.

    Settings are loaded from environment variables with the BP_ prefix,
    the same namespace the platform uses for user-provided build options.
    """

    model_config = SettingsConfigDict(
        env_prefix="BP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Targets
    go_targets: str | None = Field(
        default=None,
        description="Colon-separated build targets; overrides buildpack.yml",
    )

    # Toolchain
    go_binary: str = Field(
        default="go",
        description="Go toolchain executable",
    )
    build_mode: str = Field(
        default="pie",
        description="Value passed to `go install -buildmode`",
    )
    build_tags: str = Field(
        default="cloudfoundry",
        description="Value passed to `go install -tags`",
    )
    build_timeout: int | None = Field(
        default=None,
        ge=1,
        description="Timeout for toolchain invocations in seconds (unset = none)",
    )

    # Layers
    reuse_cache: bool = Field(
        default=False,
        description="Give layers a content identity so unchanged builds are reused",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )


def get_settings() -> Settings:
    """Get the buildpack settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()


def print_settings_json(settings: Settings | None = None) -> str:
    """Render effective settings as JSON.

    Args:
        settings: Optional settings instance; uses default if not provided.

    Returns:
        JSON string of effective settings.
    """
    if settings is None:
        settings = get_settings()
    return settings.model_dump_json(indent=2)


__all__ = ["Settings", "get_settings", "print_settings_json"]
