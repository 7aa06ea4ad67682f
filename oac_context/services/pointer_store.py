"""Pointer config persistence.

The pointer file (.oac.json) at a project root pins the project's content
root so discovery can take the fast path.
"""

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from oac_context.errors import PointerWriteError
from oac_context.models.discovery import PointerConfig
from oac_context.models.discovery import PointerContext
from oac_context.storage.paths import get_pointer_path

logger = logging.getLogger(__name__)


class PointerStore:
    """Reads and writes project pointer files."""

    def exists(self, project_root: Path) -> bool:
        return get_pointer_path(project_root).is_file()

    def load(self, project_root: Path) -> PointerConfig | None:
        """Load the pointer config for a project.

        Args:
            project_root: Project directory

        Returns:
            Pointer config, or None if missing or unreadable
        """
        path = get_pointer_path(project_root)
        if not path.exists():
            return None
        try:
            with open(path, encoding="utf-8") as f:
                return PointerConfig.model_validate(json.load(f))
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable pointer file {path}: {e}")
            return None

    def resolve_root(self, project_root: Path, pointer: PointerConfig) -> Path:
        """Absolute content root named by a pointer config."""
        root = Path(pointer.context.root).expanduser()
        if not root.is_absolute():
            root = project_root / root
        return root.resolve()

    def write(self, project_root: Path, context_root: str, overwrite: bool = False) -> bool:
        """Write the pointer config for a project.

        Args:
            project_root: Project directory
            context_root: Value for ``context.root`` (relative to the project root)
            overwrite: Replace an existing pointer file

        Returns:
            True if the file was written, False if one already existed

        Raises:
            PointerWriteError: If the pointer file cannot be written
        """
        path = get_pointer_path(project_root)
        if path.exists() and not overwrite:
            logger.debug(f"Pointer file already exists: {path}")
            return False

        config = PointerConfig(context=PointerContext(root=context_root))
        temp_path = path.with_name(f"{path.name}.tmp")
        try:
            project_root.mkdir(parents=True, exist_ok=True)
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(config.model_dump(mode="json"), f, indent=2)
                f.write("\n")
            temp_path.replace(path)
        except OSError as e:
            try:
                temp_path.unlink(missing_ok=True)
            except OSError:
                logger.warning(f"Could not remove temporary file {temp_path}")
            raise PointerWriteError(f"Failed to write pointer file {path}: {e}") from e

        logger.info(f"Wrote pointer file {path} (context.root = {context_root})")
        return True
