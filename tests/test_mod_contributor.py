"""Tests for mod/contributor.py module.

Tests the build step sequence with a fake toolchain runner.
"""

import json
import os
from unittest.mock import patch

import pytest

from go_mod_buildpack.errors import (
    BuildFailure,
    CleanupError,
    ConfigError,
    MetadataWriteError,
    StagingError,
    ToolchainQueryError,
)
from go_mod_buildpack.layers import Layers
from go_mod_buildpack.mod import DEPENDENCY_LAYER, LAUNCH_LAYER, Contributor
from go_mod_buildpack.mod.contributor import cleanup_app_root
from go_mod_buildpack.mod.runner import CommandError


def make_contributor(app_root, layers_dir, runner, settings) -> Contributor:
    return Contributor(app_root, Layers(layers_dir), runner, settings)


class TestContribute:
    """Tests for the full contribute() sequence."""

    def test_end_to_end_module_default_target(
        self, app_root, layers_dir, fake_runner, settings
    ):
        """Should build the module, stage `widget` and register it as web."""
        contributor = make_contributor(app_root, layers_dir, fake_runner, settings)

        contributor.contribute()

        assert contributor.targets == ()
        assert contributor.app_name == "widget"

        (install,) = fake_runner.run_calls
        assert install["command"] == "go"
        assert install["work_dir"] == app_root
        assert install["quiet"] is False
        assert install["args"] == [
            "install", "-buildmode", "pie", "-tags", "cloudfoundry"
        ]
        assert install["env"] == {"GOPATH": str(layers_dir / DEPENDENCY_LAYER)}

        assert fake_runner.output_calls[0]["args"] == ["list", "-m"]

        binary = layers_dir / LAUNCH_LAYER / "widget"
        assert binary.is_file()
        assert not (layers_dir / DEPENDENCY_LAYER / "bin" / "widget").exists()

        launch = json.loads((layers_dir / "launch.json").read_text())
        assert launch == {
            "processes": [{"type": "web", "command": str(binary.absolute())}]
        }

    def test_module_query_uses_module_cache_gopath(
        self, app_root, layers_dir, fake_runner, settings
    ):
        """`go list -m` should see the same GOPATH as `go install`."""
        make_contributor(app_root, layers_dir, fake_runner, settings).contribute()

        (query,) = fake_runner.output_calls
        assert query["work_dir"] == app_root
        assert query["env"] == {"GOPATH": str(layers_dir / DEPENDENCY_LAYER)}
        assert query["env"] == fake_runner.run_calls[0]["env"]

    def test_layer_flags(self, app_root, layers_dir, fake_runner, settings):
        make_contributor(app_root, layers_dir, fake_runner, settings).contribute()

        layers = Layers(layers_dir)
        assert layers.layer(DEPENDENCY_LAYER).read_record().flags == ["cache"]
        assert layers.layer(LAUNCH_LAYER).read_record().flags == ["launch"]

    def test_targets_from_override(self, app_root, layers_dir, settings, make_runner):
        """Should pass targets to go install and name the app after the first."""
        settings.go_targets = "./cmd/server:./cmd/worker"
        runner = make_runner(binary_name="server")
        contributor = make_contributor(app_root, layers_dir, runner, settings)

        contributor.contribute()

        assert runner.run_calls[0]["args"][-2:] == ["./cmd/server", "./cmd/worker"]
        assert runner.output_calls == []
        assert contributor.app_name == "server"
        assert (layers_dir / LAUNCH_LAYER / "server").is_file()

    def test_targets_from_buildpack_yml(
        self, app_root, layers_dir, settings, make_runner
    ):
        (app_root / "buildpack.yml").write_text("go:\n  targets: [cmd/api]\n")
        runner = make_runner(binary_name="api")

        make_contributor(app_root, layers_dir, runner, settings).contribute()

        assert runner.run_calls[0]["args"][-1] == "cmd/api"

    def test_vendor_directory(self, app_root, layers_dir, fake_runner, settings):
        (app_root / "vendor").mkdir()

        make_contributor(app_root, layers_dir, fake_runner, settings).contribute()

        assert "-mod=vendor" in fake_runner.run_calls[0]["args"]

    def test_process_environment_untouched(
        self, app_root, layers_dir, fake_runner, settings
    ):
        before = os.environ.get("GOPATH")
        make_contributor(app_root, layers_dir, fake_runner, settings).contribute()
        assert os.environ.get("GOPATH") == before

    def test_module_cache_rebuilt_every_run_by_default(
        self, app_root, layers_dir, fake_runner, settings
    ):
        """Without layer identity both layers are rebuilt on each run."""
        make_contributor(app_root, layers_dir, fake_runner, settings).contribute()
        make_contributor(app_root, layers_dir, fake_runner, settings).contribute()

        assert len(fake_runner.run_calls) == 2
        assert (layers_dir / LAUNCH_LAYER / "widget").is_file()


class TestContributeFailures:
    """Tests that the first failure stops the sequence."""

    def test_config_error_stops_before_build(
        self, app_root, layers_dir, fake_runner, settings
    ):
        (app_root / "buildpack.yml").write_text("go: [\n")

        with pytest.raises(ConfigError):
            make_contributor(app_root, layers_dir, fake_runner, settings).contribute()

        assert fake_runner.run_calls == []
        assert not layers_dir.exists()

    def test_build_failure(self, app_root, layers_dir, settings, make_runner):
        error = CommandError("go install failed", exit_code=2)
        runner = make_runner(install_error=error)

        with pytest.raises(BuildFailure) as exc_info:
            make_contributor(app_root, layers_dir, runner, settings).contribute()

        assert exc_info.value.exit_code == 2
        assert exc_info.value.code == "build_failed"
        assert runner.output_calls == []
        assert not (layers_dir / LAUNCH_LAYER).exists()
        assert not (layers_dir / "launch.json").exists()

    def test_toolchain_query_error(self, app_root, layers_dir, settings, make_runner):
        runner = make_runner(query_error=CommandError("not a module", exit_code=1))

        with pytest.raises(ToolchainQueryError):
            make_contributor(app_root, layers_dir, runner, settings).contribute()

        assert len(runner.run_calls) == 1
        assert not (layers_dir / LAUNCH_LAYER).exists()

    def test_binary_name_mismatch(self, app_root, layers_dir, settings, make_runner):
        """Should raise StagingError when go install produced another name."""
        runner = make_runner(binary_name="something-else")

        with pytest.raises(StagingError):
            make_contributor(app_root, layers_dir, runner, settings).contribute()

        assert not (layers_dir / "launch.json").exists()

    def test_metadata_write_error(self, app_root, layers_dir, fake_runner, settings):
        with patch.object(
            Layers,
            "write_application_metadata",
            side_effect=MetadataWriteError("disk full"),
        ):
            with pytest.raises(MetadataWriteError, match="disk full"):
                make_contributor(
                    app_root, layers_dir, fake_runner, settings
                ).contribute()


class TestContributeBinLayer:
    """Tests for the binary staging step."""

    def test_moves_binary(self, app_root, layers_dir, settings, make_runner):
        contributor = make_contributor(app_root, layers_dir, make_runner(), settings)
        source = contributor.go_mod_layer.root / "bin" / "app"
        source.parent.mkdir(parents=True)
        source.write_bytes(b"binary")
        contributor.app_name = "app"

        contributor.contribute_bin_layer(contributor.launch_layer)

        target = layers_dir / LAUNCH_LAYER / "app"
        assert target.read_bytes() == b"binary"
        assert not source.exists()

    def test_missing_binary_leaves_no_output(
        self, app_root, layers_dir, settings, make_runner
    ):
        contributor = make_contributor(app_root, layers_dir, make_runner(), settings)
        contributor.app_name = "app"

        with pytest.raises(StagingError) as exc_info:
            contributor.contribute_bin_layer(contributor.launch_layer)

        assert exc_info.value.path == contributor.go_mod_layer.root / "bin" / "app"
        assert not contributor.launch_layer.root.exists()

    def test_move_failure(self, app_root, layers_dir, settings, make_runner):
        contributor = make_contributor(app_root, layers_dir, make_runner(), settings)
        source = contributor.go_mod_layer.root / "bin" / "app"
        source.parent.mkdir(parents=True)
        source.write_bytes(b"binary")
        contributor.app_name = "app"

        with patch(
            "go_mod_buildpack.mod.contributor.shutil.move",
            side_effect=PermissionError("denied"),
        ):
            with pytest.raises(StagingError, match="denied"):
                contributor.contribute_bin_layer(contributor.launch_layer)


class TestReuseCache:
    """Tests for identity-based layer reuse."""

    def test_unchanged_source_skips_build(
        self, app_root, layers_dir, fake_runner, settings
    ):
        settings.reuse_cache = True

        make_contributor(app_root, layers_dir, fake_runner, settings).contribute()
        make_contributor(app_root, layers_dir, fake_runner, settings).contribute()

        assert len(fake_runner.run_calls) == 1
        assert (layers_dir / LAUNCH_LAYER / "widget").is_file()
        assert (layers_dir / "launch.json").is_file()

    def test_changed_source_rebuilds(
        self, app_root, layers_dir, fake_runner, settings
    ):
        settings.reuse_cache = True
        make_contributor(app_root, layers_dir, fake_runner, settings).contribute()

        (app_root / "main.go").write_text("package main\n\nfunc main() {}\n")
        make_contributor(app_root, layers_dir, fake_runner, settings).contribute()

        assert len(fake_runner.run_calls) == 2
        assert (layers_dir / LAUNCH_LAYER / "widget").is_file()

    def test_lost_launch_layer_rebuilds_module_cache(
        self, app_root, layers_dir, fake_runner, settings
    ):
        """Should recompile when only the module cache survived."""
        settings.reuse_cache = True
        make_contributor(app_root, layers_dir, fake_runner, settings).contribute()

        Layers(layers_dir).layer(LAUNCH_LAYER).invalidate()
        make_contributor(app_root, layers_dir, fake_runner, settings).contribute()

        assert len(fake_runner.run_calls) == 2
        assert (layers_dir / LAUNCH_LAYER / "widget").is_file()


class TestCleanup:
    """Tests for application root cleanup."""

    def test_removes_all_children(self, tmp_path, layers_dir, settings, make_runner):
        root = tmp_path / "workspace"
        root.mkdir()
        (root / "a").write_text("a")
        (root / "b").write_text("b")
        (root / "c").mkdir()
        (root / "c" / "nested.go").write_text("package c\n")
        (root / ".hidden").write_text("h")

        make_contributor(root, layers_dir, make_runner(), settings).cleanup()

        assert root.is_dir()
        assert list(root.iterdir()) == []

    def test_empty_root_is_noop(self, tmp_path):
        root = tmp_path / "workspace"
        root.mkdir()
        cleanup_app_root(root)
        assert list(root.iterdir()) == []

    def test_symlink_not_followed(self, tmp_path):
        root = tmp_path / "workspace"
        root.mkdir()
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "keep").write_text("keep")
        (root / "link").symlink_to(outside, target_is_directory=True)

        cleanup_app_root(root)

        assert list(root.iterdir()) == []
        assert (outside / "keep").exists()

    def test_unremovable_entry_raises_cleanup_error(self, tmp_path):
        root = tmp_path / "workspace"
        root.mkdir()
        (root / "c").mkdir()

        with patch(
            "go_mod_buildpack.mod.contributor.shutil.rmtree",
            side_effect=PermissionError("denied"),
        ):
            with pytest.raises(CleanupError) as exc_info:
                cleanup_app_root(root)

        assert exc_info.value.code == "cleanup_error"
        assert exc_info.value.path == root / "c"
        assert isinstance(exc_info.value.__cause__, PermissionError)
