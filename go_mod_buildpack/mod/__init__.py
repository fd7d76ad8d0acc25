"""Go module build step.

This module handles:
- Build target resolution (BP_GO_TARGETS, buildpack.yml)
- Running `go install` into the module cache layer
- Application name derivation
- Staging the binary and its start command into the launch layer
"""

from go_mod_buildpack.mod.contributor import DEPENDENCY_LAYER, LAUNCH_LAYER, Contributor

__all__ = ["DEPENDENCY_LAYER", "LAUNCH_LAYER", "Contributor"]
