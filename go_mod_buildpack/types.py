"""Shared type definitions for go_mod_buildpack.

This module contains dataclasses, enums, and protocols shared across
subpackages to avoid circular imports.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

# Process type registered for the application binary
WEB_PROCESS_TYPE = "web"


class LayerFlag(str, Enum):
    """How a layer is used by the platform."""

    CACHE = "cache"
    LAUNCH = "launch"


class MetadataIdentity(Protocol):
    """Anything that can name the content of a layer."""

    def identity(self) -> tuple[str, str]:
        """Return (name, version) for the layer content."""
        ...


@dataclass(frozen=True)
class LayerMetadata:
    """Identity token for a layer.

    Attributes:
        name: Human-readable name of the layer content.
        hash: Digest of the inputs that produced the content.
    """

    name: str
    hash: str

    def identity(self) -> tuple[str, str]:
        return self.name, self.hash


__all__ = [
    "WEB_PROCESS_TYPE",
    "LayerFlag",
    "LayerMetadata",
    "MetadataIdentity",
]
