"""Layer identity computation.

This module handles:
- Canonical snapshot of the inputs that affect the compiled binary
- Deterministic hash computation over the normalized inputs

Layers given this identity are reused by the layer manager when none of
the inputs changed. Without it (the default) layers are rebuilt every run.
"""

from __future__ import annotations

import hashlib
import json
import stat
from collections.abc import Sequence
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from go_mod_buildpack.types import LayerMetadata

if TYPE_CHECKING:
    from go_mod_buildpack.config import Settings

# Bump when the identity format changes
IDENTITY_SCHEMA_VERSION = "1"


@dataclass
class ModuleInputs:
    """Canonical representation of the inputs of `go install`.

    Attributes:
        schema_version: Version of the identity schema.
        targets: Resolved build targets, in build order.
        build_mode: Value of `-buildmode`.
        build_tags: Value of `-tags`.
        vendored: Whether `-mod=vendor` is used.
        source_hash: Hash of the application source tree.
    """

    schema_version: str = IDENTITY_SCHEMA_VERSION
    targets: list[str] = field(default_factory=list)
    build_mode: str = ""
    build_tags: str = ""
    vendored: bool = False
    source_hash: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def compute_source_hash(app_root: Path) -> str:
    """Compute a deterministic hash of the application source tree.

    The hash covers sorted relative paths, file modes (lower 9 bits) and
    file contents. Hidden files and directories (e.g. `.git`) are skipped.

    Args:
        app_root: Application source root.

    Returns:
        SHA-256 hex digest of the tree.
    """
    hasher = hashlib.sha256()

    for path in sorted(app_root.rglob("*")):
        rel = path.relative_to(app_root)
        if any(part.startswith(".") for part in rel.parts):
            continue
        if not path.is_file():
            continue

        # path\0mode\0content
        hasher.update(rel.as_posix().encode("utf-8"))
        hasher.update(b"\0")
        hasher.update(f"{stat.S_IMODE(path.stat().st_mode):o}".encode())
        hasher.update(b"\0")
        hasher.update(path.read_bytes())
        hasher.update(b"\0")

    return hasher.hexdigest()


def create_module_inputs(
    app_root: Path,
    targets: Sequence[str],
    settings: Settings,
) -> ModuleInputs:
    return ModuleInputs(
        targets=list(targets),
        build_mode=settings.build_mode,
        build_tags=settings.build_tags,
        vendored=(app_root / "vendor").exists(),
        source_hash=compute_source_hash(app_root),
    )


def compute_identity_hash(inputs: ModuleInputs) -> str:
    """Compute a hash of module inputs.

    Args:
        inputs: ModuleInputs instance.

    Returns:
        Identity hash as hex string (sha256:...).
    """
    canonical_json = json.dumps(
        inputs.to_dict(),
        sort_keys=True,
        separators=(",", ":"),
    )
    digest = hashlib.sha256(canonical_json.encode("utf-8")).hexdigest()
    return f"sha256:{digest}"


def compute_layer_metadata(
    name: str,
    app_root: Path,
    targets: Sequence[str],
    settings: Settings,
) -> LayerMetadata:
    """Build the identity token for a layer from the module inputs.

    Args:
        name: Layer content name.
        app_root: Application source root.
        targets: Resolved build targets.
        settings: Buildpack settings.

    Returns:
        LayerMetadata with the computed hash.
    """
    inputs = create_module_inputs(app_root, targets, settings)
    return LayerMetadata(name=name, hash=compute_identity_hash(inputs))


__all__ = [
    "IDENTITY_SCHEMA_VERSION",
    "ModuleInputs",
    "compute_identity_hash",
    "compute_layer_metadata",
    "compute_source_hash",
    "create_module_inputs",
]
