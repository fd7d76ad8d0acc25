"""Application name derivation.

The binary `go install` produces is named after the last path segment of
the package it builds: the first explicit target, or the module itself.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from go_mod_buildpack.config import get_settings
from go_mod_buildpack.errors import ConfigError, ToolchainQueryError
from go_mod_buildpack.mod.runner import CommandError

if TYPE_CHECKING:
    from go_mod_buildpack.config import Settings
    from go_mod_buildpack.mod.runner import ProcessRunner

logger = logging.getLogger(__name__)


def last_path_segment(path: str) -> str:
    return path.split("/")[-1]


def parse_app_name_from_output(output: str) -> str:
    """Extract the app name from `go list -m` output.

    The toolchain may print diagnostics before the module path, so only
    the last line is used.

    Args:
        output: Combined output of `go list -m`.

    Returns:
        Last path segment of the module path ("" if there is no output).
    """
    lines = output.strip().splitlines()
    if not lines:
        return ""
    return last_path_segment(lines[-1].strip())


def derive_app_name(
    targets: Sequence[str],
    app_root: Path,
    runner: ProcessRunner,
    settings: Settings | None = None,
    env: Mapping[str, str] | None = None,
) -> str:
    """Compute the name of the binary produced by `go install`.

    Args:
        targets: Resolved build targets.
        app_root: Application source root.
        runner: Runner used to query the module name.
        settings: Buildpack settings; loaded from the environment if omitted.
        env: Environment overrides for the query (e.g. GOPATH).

    Returns:
        Non-empty application name.

    Raises:
        ConfigError: If the first target has no final path segment.
        ToolchainQueryError: If the module name cannot be determined.
    """
    if targets:
        name = last_path_segment(targets[0])
        if not name:
            raise ConfigError(f"Cannot derive app name from target {targets[0]!r}")
        return name

    if settings is None:
        settings = get_settings()

    try:
        output = runner.run_with_output(
            settings.go_binary, app_root, False, "list", "-m", env=env
        )
    except CommandError as e:
        raise ToolchainQueryError(
            f"Failed to query module name: {e}", exit_code=e.exit_code
        ) from e

    name = parse_app_name_from_output(output)
    if not name:
        raise ToolchainQueryError("`go list -m` did not report a module path")
    logger.debug("Derived app name %s from module path", name)
    return name


__all__ = ["derive_app_name", "last_path_segment", "parse_app_name_from_output"]
