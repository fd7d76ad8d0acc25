"""Error taxonomy for the Go module contributor.

Every error carries a stable code that the CLI surfaces in JSON output.
Errors propagate unchanged from the step that raised them to the caller
of the contributor.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

# Stable error codes
BUILDPACK_ERROR = "buildpack_error"
CONFIG_ERROR = "config_error"
TOOLCHAIN_QUERY_ERROR = "toolchain_query_error"
BUILD_FAILED = "build_failed"
STAGING_ERROR = "staging_error"
METADATA_WRITE_ERROR = "metadata_write_error"
CLEANUP_ERROR = "cleanup_error"


class BuildpackError(Exception):
    """Base error for contributor operations."""

    default_code = BUILDPACK_ERROR

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"code": self.code, "message": self.message}


class ConfigError(BuildpackError):
    """Raised when buildpack.yml is unreadable or malformed."""

    default_code = CONFIG_ERROR

    def __init__(
        self,
        message: str,
        path: Path | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message, code)
        self.path = path

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.path is not None:
            result["path"] = str(self.path)
        return result


class ToolchainQueryError(BuildpackError):
    """Raised when the toolchain cannot report the module name."""

    default_code = TOOLCHAIN_QUERY_ERROR

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message, code)
        self.exit_code = exit_code

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.exit_code is not None:
            result["exit_code"] = self.exit_code
        return result


class BuildFailure(BuildpackError):
    """Raised when `go install` exits non-zero or cannot be started."""

    default_code = BUILD_FAILED

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message, code)
        self.exit_code = exit_code

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.exit_code is not None:
            result["exit_code"] = self.exit_code
        return result


class StagingError(BuildpackError):
    """Raised when the compiled binary is missing or cannot be moved."""

    default_code = STAGING_ERROR

    def __init__(
        self,
        message: str,
        path: Path | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message, code)
        self.path = path

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.path is not None:
            result["path"] = str(self.path)
        return result


class MetadataWriteError(BuildpackError):
    """Raised when launch metadata cannot be persisted."""

    default_code = METADATA_WRITE_ERROR


class CleanupError(BuildpackError):
    """Raised when an entry of the application root cannot be removed."""

    default_code = CLEANUP_ERROR

    def __init__(
        self,
        message: str,
        path: Path | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message, code)
        self.path = path

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.path is not None:
            result["path"] = str(self.path)
        return result


__all__ = [
    "BUILDPACK_ERROR",
    "BUILD_FAILED",
    "CLEANUP_ERROR",
    "CONFIG_ERROR",
    "METADATA_WRITE_ERROR",
    "STAGING_ERROR",
    "TOOLCHAIN_QUERY_ERROR",
    "BuildFailure",
    "BuildpackError",
    "CleanupError",
    "ConfigError",
    "MetadataWriteError",
    "StagingError",
    "ToolchainQueryError",
]
