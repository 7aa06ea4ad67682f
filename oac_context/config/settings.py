"""Settings model for the context installer.

Contract:
- Inputs: Environment variables (OAC_*), YAML values, CLI overrides
- Outputs: Validated InstallerSettings objects
- Side Effects: None (read-only)
"""

import os
from pathlib import Path

from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


def _plugin_root_from_env() -> Path | None:
    root = os.environ.get("CLAUDE_PLUGIN_ROOT")
    return Path(root) if root else None


class InstallerSettings(BaseSettings):
    """Configuration for context installation and discovery.

    Attributes:
        repository: Content repository (owner/name shorthand, URL, or local path)
        branch: Branch to fetch registry and content from
        registry_url: Override for the registry JSON URL
        registry_file: Local registry file; switches the fetcher to local mode
        context_source_path: Fixed subtree inside the repository holding the content
        index_file: File whose presence marks a valid content root
        project_root: Project scope root (default: current directory)
        global_root: Global scope root (default: ~/.claude)
        plugin_root: Installation-local fallback root (default: $CLAUDE_PLUGIN_ROOT)
        default_profile: Profile used when neither profile nor components are given

    Example:
        >>> settings = InstallerSettings()
        >>> assert settings.branch == "main"
    """

    model_config = SettingsConfigDict(
        env_prefix="OAC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    repository: str = "darrenhinde/OpenAgentsControl"
    branch: str = "main"
    registry_url: str | None = None
    registry_file: Path | None = None

    context_source_path: str = ".opencode/context"
    index_file: str = "navigation.md"

    project_root: Path = Field(default_factory=Path.cwd)
    global_root: Path = Path("~/.claude")
    plugin_root: Path | None = Field(default_factory=_plugin_root_from_env)
    scratch_root: Path | None = None

    default_profile: str = "essential"

    http_timeout: float = 30.0
    clone_timeout: float = 300.0
    lock_timeout: float = 30.0
    lock_stale_seconds: float = 3600.0

    log_level: str = "warning"

    @field_validator("project_root", "global_root", "plugin_root", "registry_file", "scratch_root")
    @classmethod
    def expand_and_resolve_path(cls, v: Path | None) -> Path | None:
        """Expand ~ and resolve to absolute path.

        Args:
            v: Path (may contain ~ or be relative)

        Returns:
            Absolute path, or None when unset
        """
        if v is None:
            return None
        return Path(v).expanduser().resolve()

    @field_validator("context_source_path")
    @classmethod
    def strip_slashes(cls, v: str) -> str:
        return v.strip("/")
