"""Install request and result models."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel
from pydantic import Field

from oac_context.models.manifest import Manifest
from oac_context.models.registry import Profile


class InstallScope(str, Enum):
    """Where an installation lands."""

    PROJECT = "project"
    GLOBAL = "global"


class InstallOptions(BaseModel):
    """Options for one install invocation.

    ``component_ids`` takes precedence over ``profile`` when non-empty.
    """

    profile: Profile = Profile.ESSENTIAL
    component_ids: list[str] = Field(default_factory=list)
    scope: InstallScope = InstallScope.PROJECT
    dry_run: bool = False
    force: bool = False
    verbose: bool = False

    @property
    def is_custom(self) -> bool:
        return bool(self.component_ids)


class InstallStatus(str, Enum):
    """How an install invocation ended."""

    INSTALLED = "installed"
    ALREADY_INSTALLED = "already_installed"
    DRY_RUN = "dry_run"


class VerificationReport(BaseModel):
    """Post-install check of manifest local paths.

    Missing files are a partial-success condition, never an error.
    """

    found: int = 0
    missing: list[str] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return self.found + len(self.missing)

    @property
    def ok(self) -> bool:
        return not self.missing


class InstallResult(BaseModel):
    """Outcome of an install invocation."""

    status: InstallStatus
    manifest: Manifest
    scope: InstallScope
    context_dir: Path
    manifest_path: Path
    pointer_written: bool = False
    verification: VerificationReport | None = None
    sparse_paths: list[str] = Field(default_factory=list)
