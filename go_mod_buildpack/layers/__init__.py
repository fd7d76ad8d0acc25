"""Layer management module.

This module handles:
- Path-addressable layer directories under a layers root
- Reuse-or-rebuild decisions based on persisted layer identity
- Writing application launch metadata
"""

from go_mod_buildpack.layers.manager import Layer, Layers
from go_mod_buildpack.layers.models import LaunchMetadata, LayerRecord, Process

__all__ = ["LaunchMetadata", "Layer", "LayerRecord", "Layers", "Process"]
