"""Discovery service for locating a project's content root.

Resolution order:
1. Pointer file (.oac.json) at the project root - fast path
2. Discovery chain, first match wins:
   - project-local candidates, in table order
   - global per-user location
   - installation-local fallback
3. Not found

A root is valid when its index file exists. A pointer whose root lacks the
index file is stale: resolution warns and falls through to the chain.

The service never writes. It signals ``write_pointer`` when a project-local
root was found and the pointer file is missing or stale; the caller decides
whether to persist it.
"""

import logging
from pathlib import Path

from oac_context.config.settings import InstallerSettings
from oac_context.models.discovery import DiscoveryCandidate
from oac_context.models.discovery import DiscoveryResult
from oac_context.models.discovery import DiscoverySource
from oac_context.services.pointer_store import PointerStore
from oac_context.storage.paths import CONTEXT_DIRNAME

logger = logging.getLogger(__name__)

PROJECT_LOCAL_ROOTS = (".claude/context", ".opencode/context", ".oac/context")


def default_candidates(settings: InstallerSettings) -> list[DiscoveryCandidate]:
    """Build the fixed discovery chain for a configuration.

    Args:
        settings: Installer settings (global and plugin roots)

    Returns:
        Candidates in search order
    """
    candidates = [DiscoveryCandidate(DiscoverySource.PROJECT_LOCAL, path) for path in PROJECT_LOCAL_ROOTS]
    candidates.append(DiscoveryCandidate(DiscoverySource.GLOBAL_USER, str(settings.global_root / CONTEXT_DIRNAME)))
    if settings.plugin_root is not None:
        candidates.append(
            DiscoveryCandidate(DiscoverySource.INSTALLATION_FALLBACK, str(settings.plugin_root / CONTEXT_DIRNAME))
        )
    return candidates


class DiscoveryService:
    """Resolves the authoritative content root for a project."""

    def __init__(
        self,
        settings: InstallerSettings,
        candidates: list[DiscoveryCandidate] | None = None,
        pointer_store: PointerStore | None = None,
    ) -> None:
        """Initialize discovery service.

        Args:
            settings: Installer settings
            candidates: Discovery chain (default: default_candidates(settings))
            pointer_store: Pointer file reader
        """
        self.settings = settings
        self.candidates = candidates if candidates is not None else default_candidates(settings)
        self.pointer_store = pointer_store or PointerStore()
        self.index_file = settings.index_file

    def is_valid_root(self, root: Path) -> bool:
        return (root / self.index_file).is_file()

    def candidate_root(self, candidate: DiscoveryCandidate, project_root: Path) -> Path:
        path = Path(candidate.path).expanduser()
        if candidate.is_project_local:
            return project_root / path
        return path

    def resolve(self, project_root: Path | None = None) -> DiscoveryResult:
        """Resolve the content root for a project.

        Args:
            project_root: Project directory (default: settings.project_root)

        Returns:
            DiscoveryResult; ``context_root`` is None when nothing matched
        """
        project_root = (project_root or self.settings.project_root).resolve()
        checked: list[Path] = []
        stale = False

        pointer_present = self.pointer_store.exists(project_root)
        pointer = self.pointer_store.load(project_root) if pointer_present else None
        if pointer is not None:
            root = self.pointer_store.resolve_root(project_root, pointer)
            checked.append(root)
            if self.is_valid_root(root):
                logger.debug(f"Resolved context root via pointer: {root}")
                return DiscoveryResult(
                    context_root=root,
                    source=DiscoverySource.POINTER,
                    pointer_root=pointer.context.root,
                    checked=checked,
                )
            logger.warning(
                f"Stale pointer in {project_root}: {root / self.index_file} is missing, falling back to discovery"
            )
            stale = True
        elif pointer_present:
            stale = True

        for candidate in self.candidates:
            root = self.candidate_root(candidate, project_root)
            checked.append(root)
            if not self.is_valid_root(root):
                continue

            logger.debug(f"Resolved context root via {candidate.kind.value}: {root}")
            project_local = candidate.is_project_local
            return DiscoveryResult(
                context_root=root.resolve(),
                source=candidate.kind,
                write_pointer=project_local and (stale or not pointer_present),
                stale_pointer=stale,
                pointer_root=Path(candidate.path).as_posix() if project_local else None,
                checked=checked,
            )

        logger.info(f"No context root found for {project_root}")
        return DiscoveryResult(stale_pointer=stale, checked=checked)
