"""Discovery models.

Pointer config persisted at a project root, the candidate table searched by
the discovery chain, and the result handed back to callers.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from pydantic import BaseModel
from pydantic import Field

POINTER_VERSION = "1"


class PointerContext(BaseModel):
    """Context section of the pointer config."""

    root: str


class PointerConfig(BaseModel):
    """Pointer file pinning a project's content root.

    ``context.root`` is stored relative to the project root when the content
    lives inside the project, absolute otherwise.
    """

    version: str = POINTER_VERSION
    context: PointerContext


class DiscoverySource(str, Enum):
    """Which rule produced a discovery result."""

    POINTER = "pointer"
    PROJECT_LOCAL = "project_local"
    GLOBAL_USER = "global_user"
    INSTALLATION_FALLBACK = "installation_fallback"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class DiscoveryCandidate:
    """One entry of the discovery chain.

    Attributes:
        kind: Rule that this candidate represents
        path: Relative to the project root for project-local candidates,
              relative to the resolver's base directory otherwise
    """

    kind: DiscoverySource
    path: str

    @property
    def is_project_local(self) -> bool:
        return self.kind is DiscoverySource.PROJECT_LOCAL


class DiscoveryResult(BaseModel):
    """Outcome of resolving a project's content root.

    Attributes:
        context_root: Resolved content root, None when nothing matched
        source: Rule that matched
        write_pointer: True when a project-local root was found and the
                       pointer file is missing or stale
        stale_pointer: True when a pointer file existed but its root had no
                       index file
        pointer_root: Value to persist as ``context.root`` when writing back
    """

    context_root: Path | None = None
    source: DiscoverySource = DiscoverySource.NOT_FOUND
    write_pointer: bool = False
    stale_pointer: bool = False
    pointer_root: str | None = None
    checked: list[Path] = Field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.context_root is not None
