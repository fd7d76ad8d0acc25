"""Filesystem layer manager.

This module handles:
- Resolving named layers to directories under a layers root
- Deciding whether a layer is reused or rebuilt from its persisted identity
- Persisting layer records and application launch metadata as JSON

A layer contributed with no identity never matches its previous record,
so it is rebuilt on every run.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from pathlib import Path

from pydantic import ValidationError

from go_mod_buildpack.errors import MetadataWriteError
from go_mod_buildpack.layers.models import LaunchMetadata, LayerRecord
from go_mod_buildpack.types import LayerFlag, MetadataIdentity

logger = logging.getLogger(__name__)

LAUNCH_METADATA_FILENAME = "launch.json"


class Layer:
    """A named directory managed by :class:`Layers`.

    Attributes:
        name: Layer name.
        root: Directory holding the layer content.
        record_path: Path of the persisted layer record.
    """

    def __init__(self, name: str, layers_dir: Path) -> None:
        self.name = name
        self.root = layers_dir / name
        self.record_path = layers_dir / f"{name}.json"

    def __repr__(self) -> str:
        return f"Layer(name={self.name!r}, root={str(self.root)!r})"

    def read_record(self) -> LayerRecord | None:
        """Load the persisted record for this layer.

        Returns:
            The record, or None if it is missing or unreadable.
        """
        if not self.record_path.exists():
            return None
        try:
            return LayerRecord.model_validate_json(self.record_path.read_text())
        except (OSError, ValidationError) as e:
            logger.warning(
                "Ignoring unreadable layer record %s: %s", self.record_path, e
            )
            return None

    def metadata_matches(self, metadata: MetadataIdentity | None) -> bool:
        """Check whether the persisted layer content has the given identity.

        Args:
            metadata: Expected identity; None never matches.

        Returns:
            True if the layer can be reused as is.
        """
        if metadata is None:
            return False
        if not self.root.is_dir():
            return False
        record = self.read_record()
        if record is None:
            return False
        return (record.name, record.version) == metadata.identity()

    def invalidate(self) -> None:
        """Forget the persisted record so the next contribution rebuilds."""
        self.record_path.unlink(missing_ok=True)

    def contribute(
        self,
        metadata: MetadataIdentity | None,
        populate: Callable[[Layer], None],
        *flags: LayerFlag,
    ) -> None:
        """Reuse the layer or rebuild it with ``populate``.

        Errors raised by ``populate`` propagate unchanged and leave no
        record behind.

        Args:
            metadata: Identity of the expected content (None = always rebuild).
            populate: Callable filling the layer directory.
            *flags: How the layer is used by the platform.
        """
        if self.metadata_matches(metadata):
            logger.info("Reusing cached layer %s", self.name)
            return

        logger.info("Contributing layer %s", self.name)
        if self.root.exists():
            shutil.rmtree(self.root)
        self.record_path.unlink(missing_ok=True)
        self.root.mkdir(parents=True, exist_ok=True)

        populate(self)

        name, version = metadata.identity() if metadata is not None else ("", "")
        record = LayerRecord(name=name, version=version, flags=list(flags))
        self.record_path.write_text(record.model_dump_json(indent=2) + "\n")


class Layers:
    """Collection of layers rooted at a single directory."""

    def __init__(self, layers_dir: Path) -> None:
        self.layers_dir = layers_dir

    def layer(self, name: str) -> Layer:
        """Return the layer with the given name."""
        return Layer(name, self.layers_dir)

    @property
    def launch_metadata_path(self) -> Path:
        return self.layers_dir / LAUNCH_METADATA_FILENAME

    def write_application_metadata(self, metadata: LaunchMetadata) -> None:
        """Persist application launch metadata.

        Args:
            metadata: Processes to register with the launch system.

        Raises:
            MetadataWriteError: If the metadata cannot be written.
        """
        path = self.launch_metadata_path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(metadata.model_dump_json(indent=2) + "\n")
        except OSError as e:
            raise MetadataWriteError(
                f"Failed to write launch metadata to {path}: {e}"
            ) from e
        logger.debug("Wrote launch metadata: %s", path)

    def read_application_metadata(self) -> LaunchMetadata | None:
        """Load previously written launch metadata, if any."""
        path = self.launch_metadata_path
        if not path.exists():
            return None
        return LaunchMetadata.model_validate_json(path.read_text())


__all__ = ["LAUNCH_METADATA_FILENAME", "Layer", "Layers"]
