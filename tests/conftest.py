"""Shared fixtures for go_mod_buildpack tests."""

from collections.abc import Mapping
from pathlib import Path

import pytest

from go_mod_buildpack.config import Settings
from go_mod_buildpack.mod.runner import CommandError


class FakeRunner:
    """ProcessRunner double that imitates the Go toolchain.

    `go install` writes a binary named ``binary_name`` into ``$GOPATH/bin``;
    `go list -m` returns ``module_output``.
    """

    def __init__(
        self,
        binary_name: str = "widget",
        module_output: str = "github.com/acme/widget\n",
        install_error: CommandError | None = None,
        query_error: CommandError | None = None,
    ) -> None:
        self.binary_name = binary_name
        self.module_output = module_output
        self.install_error = install_error
        self.query_error = query_error
        self.run_calls: list[dict] = []
        self.output_calls: list[dict] = []

    def run(
        self,
        command: str,
        work_dir: Path,
        quiet: bool,
        *args: str,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self.run_calls.append(
            {
                "command": command,
                "work_dir": work_dir,
                "quiet": quiet,
                "args": list(args),
                "env": dict(env or {}),
            }
        )
        if self.install_error is not None:
            raise self.install_error
        bin_dir = Path((env or {})["GOPATH"]) / "bin"
        bin_dir.mkdir(parents=True, exist_ok=True)
        (bin_dir / self.binary_name).write_bytes(b"\x7fELF fake binary")

    def run_with_output(
        self,
        command: str,
        work_dir: Path,
        quiet: bool,
        *args: str,
        env: Mapping[str, str] | None = None,
    ) -> str:
        self.output_calls.append(
            {
                "command": command,
                "work_dir": work_dir,
                "quiet": quiet,
                "args": list(args),
                "env": dict(env or {}),
            }
        )
        if self.query_error is not None:
            raise self.query_error
        return self.module_output


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from BP_* variables of the host."""
    return Settings(
        _env_file=None,
        go_targets=None,
        go_binary="go",
        build_mode="pie",
        build_tags="cloudfoundry",
        build_timeout=None,
        reuse_cache=False,
        log_level="INFO",
    )


@pytest.fixture
def app_root(tmp_path: Path) -> Path:
    """A single-module Go source tree."""
    root = tmp_path / "app"
    root.mkdir()
    (root / "go.mod").write_text("module github.com/acme/widget\n\ngo 1.21\n")
    (root / "main.go").write_text('package main\n\nfunc main() { println("hi") }\n')
    return root


@pytest.fixture
def layers_dir(tmp_path: Path) -> Path:
    return tmp_path / "layers"


@pytest.fixture
def make_runner() -> type[FakeRunner]:
    """Factory for FakeRunner instances with custom toolchain behavior."""
    return FakeRunner


@pytest.fixture
def fake_runner(make_runner) -> FakeRunner:
    return make_runner()
