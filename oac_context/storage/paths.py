"""Path resolution for install scopes.

Contract:
- Inputs: InstallerSettings, InstallScope
- Outputs: Resolved ScopePaths
- Side Effects: None (directories are created by the writers, never here)
"""

from dataclasses import dataclass
from pathlib import Path

from oac_context.config.settings import InstallerSettings
from oac_context.models.install import InstallScope

PROJECT_SCOPE_DIR = ".claude"
CONTEXT_DIRNAME = "context"
MANIFEST_FILENAME = ".context-manifest.json"
POINTER_FILENAME = ".oac.json"
LOCK_FILENAME = ".context-install.lock"


@dataclass(frozen=True)
class ScopePaths:
    """Filesystem layout of one install scope.

    Attributes:
        scope: Scope these paths belong to
        scope_root: Directory holding the manifest and the content directory
        context_dir: Where the content subtree is copied
        manifest_path: Manifest file location
        lock_path: Lock file serializing installs at this scope
        pointer_path: Project pointer file, None for the global scope
        project_root: Project root the pointer is relative to (project scope only)
    """

    scope: InstallScope
    scope_root: Path
    context_dir: Path
    manifest_path: Path
    lock_path: Path
    pointer_path: Path | None = None
    project_root: Path | None = None

    @property
    def label(self) -> str:
        if self.scope is InstallScope.GLOBAL:
            return f"global ({self.context_dir})"
        return f"project ({PROJECT_SCOPE_DIR}/{CONTEXT_DIRNAME})"

    @property
    def pointer_root(self) -> str | None:
        """Content root as recorded in the pointer file (relative, posix)."""
        if self.project_root is None:
            return None
        return self.context_dir.relative_to(self.project_root).as_posix()


def get_scope_paths(settings: InstallerSettings, scope: InstallScope) -> ScopePaths:
    """Resolve the layout for a scope.

    Args:
        settings: Installer settings
        scope: Project or global

    Returns:
        ScopePaths for the scope

    Example:
        >>> paths = get_scope_paths(InstallerSettings(project_root=Path("/p")), InstallScope.PROJECT)
        >>> assert paths.pointer_path == Path("/p/.oac.json")
    """
    if scope is InstallScope.GLOBAL:
        root = settings.global_root
        return ScopePaths(
            scope=scope,
            scope_root=root,
            context_dir=root / CONTEXT_DIRNAME,
            manifest_path=root / MANIFEST_FILENAME,
            lock_path=root / LOCK_FILENAME,
        )

    project_root = settings.project_root
    root = project_root / PROJECT_SCOPE_DIR
    return ScopePaths(
        scope=scope,
        scope_root=root,
        context_dir=root / CONTEXT_DIRNAME,
        manifest_path=root / MANIFEST_FILENAME,
        lock_path=root / LOCK_FILENAME,
        pointer_path=project_root / POINTER_FILENAME,
        project_root=project_root,
    )


def get_pointer_path(project_root: Path) -> Path:
    """Get the pointer file location for a project."""
    return project_root / POINTER_FILENAME
