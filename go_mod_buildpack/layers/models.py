"""Pydantic models for persisted layer and launch metadata."""

from pydantic import BaseModel, ConfigDict, Field

from go_mod_buildpack.types import LayerFlag


class LayerRecord(BaseModel):
    """Persisted record of a contributed layer.

    Attributes:
        name: Identity name of the layer content.
        version: Identity version (hash) of the layer content.
        flags: How the layer is used by the platform.
    """

    model_config = ConfigDict(extra="forbid")

    name: str
    version: str
    flags: list[LayerFlag] = Field(default_factory=list)


class Process(BaseModel):
    """A named process the launch system can start."""

    model_config = ConfigDict(extra="forbid")

    type: str = Field(description="Process type, e.g. 'web'")
    command: str = Field(description="Absolute path of the executable")


class LaunchMetadata(BaseModel):
    """Application launch metadata."""

    model_config = ConfigDict(extra="forbid")

    processes: list[Process] = Field(default_factory=list)

    def process_map(self) -> dict[str, str]:
        """Return a mapping of process type to command."""
        return {p.type: p.command for p in self.processes}


__all__ = ["LaunchMetadata", "LayerRecord", "Process"]
