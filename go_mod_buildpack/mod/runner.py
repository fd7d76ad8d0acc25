"""Process runner for Go toolchain commands.

This module handles:
- Composing `go install` arguments from resolved targets and settings
- Executing toolchain commands with subprocess
- Passing per-invocation environment overrides (e.g. GOPATH)

The runner is a narrow seam: the contributor only depends on the
ProcessRunner protocol, so tests can substitute a fake.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from go_mod_buildpack.errors import BuildpackError

if TYPE_CHECKING:
    from go_mod_buildpack.config import Settings

logger = logging.getLogger(__name__)


class CommandError(BuildpackError):
    """Raised when a command exits non-zero, times out, or cannot start."""

    default_code = "command_error"

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        output: str | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message, code)
        self.exit_code = exit_code
        self.output = output


class ProcessRunner(Protocol):
    """Blocking command execution used by the contributor."""

    def run(
        self,
        command: str,
        work_dir: Path,
        quiet: bool,
        *args: str,
        env: Mapping[str, str] | None = None,
    ) -> None:
        """Run a command, streaming (or suppressing) its output."""
        ...

    def run_with_output(
        self,
        command: str,
        work_dir: Path,
        quiet: bool,
        *args: str,
        env: Mapping[str, str] | None = None,
    ) -> str:
        """Run a command and return its combined stdout/stderr."""
        ...


def _merge_env(env_override: Mapping[str, str] | None) -> dict[str, str] | None:
    if not env_override:
        return None
    env = dict(os.environ)
    env.update(env_override)
    return env


class SubprocessRunner:
    """ProcessRunner backed by :func:`subprocess.run`.

    Args:
        timeout: Timeout in seconds for every command (None = no timeout).
    """

    def __init__(self, timeout: int | None = None) -> None:
        self.timeout = timeout

    def run(
        self,
        command: str,
        work_dir: Path,
        quiet: bool,
        *args: str,
        env: Mapping[str, str] | None = None,
    ) -> None:
        cmd = [command, *args]
        cmd_str = shlex.join(cmd)
        logger.debug("Executing: %s (cwd=%s)", cmd_str, work_dir)

        output = subprocess.DEVNULL if quiet else None
        try:
            result = subprocess.run(
                cmd,
                cwd=work_dir,
                stdout=output,
                stderr=output,
                timeout=self.timeout,
                env=_merge_env(env),
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise CommandError(
                f"`{cmd_str}` timed out after {self.timeout} seconds",
                exit_code=-1,
                code="timeout",
            ) from e
        except OSError as e:
            raise CommandError(
                f"Failed to execute `{cmd_str}`: {e}",
                code="execution_error",
            ) from e

        if result.returncode != 0:
            raise CommandError(
                f"`{cmd_str}` failed with exit code {result.returncode}",
                exit_code=result.returncode,
            )

    def run_with_output(
        self,
        command: str,
        work_dir: Path,
        quiet: bool,
        *args: str,
        env: Mapping[str, str] | None = None,
    ) -> str:
        cmd = [command, *args]
        cmd_str = shlex.join(cmd)
        logger.debug("Executing: %s (cwd=%s)", cmd_str, work_dir)

        try:
            result = subprocess.run(
                cmd,
                cwd=work_dir,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                timeout=self.timeout,
                env=_merge_env(env),
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise CommandError(
                f"`{cmd_str}` timed out after {self.timeout} seconds",
                exit_code=-1,
                code="timeout",
            ) from e
        except OSError as e:
            raise CommandError(
                f"Failed to execute `{cmd_str}`: {e}",
                code="execution_error",
            ) from e

        if not quiet and result.stdout:
            logger.info("%s", result.stdout.rstrip())

        if result.returncode != 0:
            raise CommandError(
                f"`{cmd_str}` failed with exit code {result.returncode}",
                exit_code=result.returncode,
                output=result.stdout,
            )
        return result.stdout


def compose_install_command(
    targets: Sequence[str],
    vendored: bool,
    settings: Settings,
) -> list[str]:
    """Compose the `go install` arguments.

    Args:
        targets: Resolved build targets (may be empty).
        vendored: Whether the app ships a vendor directory.
        settings: Buildpack settings (build mode and tags).

    Returns:
        Arguments for the go binary, without the binary itself.
    """
    args = ["install", "-buildmode", settings.build_mode, "-tags", settings.build_tags]

    if vendored:
        args.append("-mod=vendor")

    args.extend(targets)
    return args


__all__ = [
    "CommandError",
    "ProcessRunner",
    "SubprocessRunner",
    "compose_install_command",
]
