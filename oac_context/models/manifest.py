"""Manifest models.

A manifest records one completed installation: which components were
installed, from which commit, and where they landed on disk. It is written
as a whole and never patched in place.
"""

from datetime import UTC
from datetime import datetime
from typing import Literal

from pydantic import BaseModel
from pydantic import Field

MANIFEST_VERSION = "1.0.0"
DRY_RUN_COMMIT = "dry-run"

ManifestProfile = Literal["essential", "standard", "extended", "specialized", "all", "custom"]


class ManifestComponent(BaseModel):
    """Installed component entry.

    Attributes:
        id: Registry component id
        name: Component name
        path: Source path inside the repository
        local_path: Absolute path of the installed file
        category: Registry category
    """

    id: str
    name: str
    path: str
    local_path: str
    category: str


class ManifestSource(BaseModel):
    """Where the installed content came from."""

    repository: str
    branch: str
    commit: str
    downloaded_at: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())


class Manifest(BaseModel):
    """Whole-install snapshot persisted next to the installed content."""

    version: str = MANIFEST_VERSION
    profile: ManifestProfile
    source: ManifestSource
    context: list[ManifestComponent] = Field(default_factory=list)

    @property
    def is_dry_run(self) -> bool:
        return self.source.commit == DRY_RUN_COMMIT
