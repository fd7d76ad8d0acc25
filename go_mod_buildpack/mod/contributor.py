"""Go module contributor.

This module provides the build step:
- contribute(): resolve targets, compile into the module cache layer,
  derive the app name, stage the binary into the launch layer, and
  register the `web` start command
- cleanup(): remove the application source once the build is staged

Each step runs only if the previous one succeeded; the first error
propagates unchanged and nothing is rolled back.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from go_mod_buildpack.config import Settings, get_settings
from go_mod_buildpack.errors import BuildFailure, CleanupError, StagingError
from go_mod_buildpack.layers.models import LaunchMetadata, Process
from go_mod_buildpack.mod.identity import compute_layer_metadata
from go_mod_buildpack.mod.naming import derive_app_name
from go_mod_buildpack.mod.runner import CommandError, compose_install_command
from go_mod_buildpack.mod.targets import resolve_targets
from go_mod_buildpack.types import WEB_PROCESS_TYPE, LayerFlag, LayerMetadata

if TYPE_CHECKING:
    from go_mod_buildpack.layers.manager import Layer, Layers
    from go_mod_buildpack.mod.runner import ProcessRunner

logger = logging.getLogger(__name__)

# Layer names
DEPENDENCY_LAYER = "go-mod"
LAUNCH_LAYER = "app-binary"


class Contributor:
    """Compiles a Go app and stages its binary for launch.

    Attributes:
        app_root: Application source root.
        layers: Layer manager and launch metadata writer.
        runner: Runner for toolchain commands.
        settings: Buildpack settings.
        go_mod_layer: Cacheable layer holding GOPATH (and the built binary).
        launch_layer: Launch layer receiving the binary.
        targets: Resolved targets, set by contribute().
        app_name: Binary name, set by contribute().
    """

    def __init__(
        self,
        app_root: Path,
        layers: Layers,
        runner: ProcessRunner,
        settings: Settings | None = None,
    ) -> None:
        self.app_root = app_root
        self.layers = layers
        self.runner = runner
        self.settings = settings if settings is not None else get_settings()
        self.go_mod_layer: Layer = layers.layer(DEPENDENCY_LAYER)
        self.launch_layer: Layer = layers.layer(LAUNCH_LAYER)
        self.targets: tuple[str, ...] = ()
        self.app_name: str = ""

    @property
    def binary_path(self) -> Path:
        """Final location of the application binary."""
        return self.launch_layer.root / self.app_name

    def contribute(self) -> None:
        """Run the whole build step.

        Raises:
            ConfigError: If buildpack.yml cannot be used.
            BuildFailure: If `go install` fails.
            ToolchainQueryError: If the module name cannot be determined.
            StagingError: If the binary cannot be moved to the launch layer.
            MetadataWriteError: If the start command cannot be written.
        """
        self.targets = resolve_targets(self.app_root, self.settings)

        go_mod_metadata, go_bin_metadata = self._layer_metadata()

        self.go_mod_layer.contribute(
            go_mod_metadata, self.contribute_go_modules, LayerFlag.CACHE
        )

        self.app_name = derive_app_name(
            self.targets,
            self.app_root,
            self.runner,
            self.settings,
            env={"GOPATH": str(self.go_mod_layer.root)},
        )

        self.launch_layer.contribute(
            go_bin_metadata, self.contribute_bin_layer, LayerFlag.LAUNCH
        )

        self.set_start_command()

    def _layer_metadata(self) -> tuple[LayerMetadata | None, LayerMetadata | None]:
        if not self.settings.reuse_cache:
            return None, None

        go_mod = compute_layer_metadata(
            DEPENDENCY_LAYER, self.app_root, self.targets, self.settings
        )
        go_bin = LayerMetadata(name=LAUNCH_LAYER, hash=go_mod.hash)

        # The binary only exists in the module cache right after a build
        if not self.launch_layer.metadata_matches(go_bin):
            self.go_mod_layer.invalidate()
        return go_mod, go_bin

    def contribute_go_modules(self, layer: Layer) -> None:
        """Compile the targets with GOPATH pointing at the module cache layer.

        Args:
            layer: The module cache layer being populated.

        Raises:
            BuildFailure: If `go install` exits non-zero or cannot start.
        """
        env = {"GOPATH": str(layer.root)}
        vendored = (self.app_root / "vendor").exists()
        args = compose_install_command(self.targets, vendored, self.settings)

        logger.info("Running `go install`")
        try:
            self.runner.run(
                self.settings.go_binary, self.app_root, False, *args, env=env
            )
        except CommandError as e:
            raise BuildFailure(str(e), exit_code=e.exit_code) from e

    def contribute_bin_layer(self, layer: Layer) -> None:
        """Move the compiled binary from the module cache to the launch layer.

        Args:
            layer: The launch layer being populated.

        Raises:
            StagingError: If the binary is missing or cannot be moved.
        """
        logger.info("Contributing app binary layer")

        old_bin_path = self.go_mod_layer.root / "bin" / self.app_name
        new_bin_path = layer.root / self.app_name

        if not old_bin_path.is_file():
            raise StagingError(
                f"Compiled binary not found: {old_bin_path}", path=old_bin_path
            )

        try:
            layer.root.mkdir(parents=True, exist_ok=True)
            shutil.move(old_bin_path, new_bin_path)
        except OSError as e:
            raise StagingError(
                f"Failed to move {old_bin_path} to {new_bin_path}: {e}",
                path=old_bin_path,
            ) from e

    def set_start_command(self) -> None:
        """Register the binary as the `web` process."""
        logger.info("Contributing start command")
        launch_path = self.binary_path.absolute()
        metadata = LaunchMetadata(
            processes=[Process(type=WEB_PROCESS_TYPE, command=str(launch_path))]
        )
        self.layers.write_application_metadata(metadata)

    def cleanup(self) -> None:
        """Delete every immediate child of the application root."""
        cleanup_app_root(self.app_root)


def cleanup_app_root(app_root: Path) -> None:
    """Delete every immediate child of a directory, hidden entries included.

    Directories are removed recursively; symlinks are removed, not followed.

    Raises:
        CleanupError: If an entry cannot be removed.
    """
    for path in sorted(app_root.iterdir()):
        try:
            if path.is_dir() and not path.is_symlink():
                shutil.rmtree(path)
            else:
                path.unlink()
        except OSError as e:
            raise CleanupError(f"Failed to remove {path}: {e}", path=path) from e
    logger.debug("Removed application source from %s", app_root)


__all__ = ["DEPENDENCY_LAYER", "LAUNCH_LAYER", "Contributor", "cleanup_app_root"]
