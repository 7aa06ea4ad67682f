"""Manifest store.

Persists the install manifest at a fixed location under a scope root.
Writes go to a temporary sibling first and replace the manifest in one
rename, so readers never observe a partially written file.
"""

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from oac_context.errors import ManifestCorruptError
from oac_context.errors import ManifestNotFoundError
from oac_context.errors import ManifestWriteError
from oac_context.models.manifest import Manifest
from oac_context.storage.paths import MANIFEST_FILENAME

logger = logging.getLogger(__name__)


class ManifestStore:
    """JSON-based manifest storage keyed by scope root."""

    def __init__(self, filename: str = MANIFEST_FILENAME) -> None:
        self.filename = filename

    def path_for(self, scope_root: Path) -> Path:
        return scope_root / self.filename

    def exists(self, scope_root: Path) -> bool:
        """Check whether a manifest exists at a scope root."""
        return self.path_for(scope_root).is_file()

    def read(self, scope_root: Path) -> Manifest:
        """Load the manifest at a scope root.

        Args:
            scope_root: Directory holding the manifest

        Returns:
            Parsed manifest

        Raises:
            ManifestNotFoundError: No manifest at this scope
            ManifestCorruptError: Manifest is not valid JSON or fails validation
        """
        path = self.path_for(scope_root)
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise ManifestNotFoundError(f"No manifest found at {path}") from e
        except json.JSONDecodeError as e:
            raise ManifestCorruptError(f"Manifest {path} is not valid JSON: {e}") from e
        except OSError as e:
            raise ManifestCorruptError(f"Failed to read manifest {path}: {e}") from e

        try:
            return Manifest.model_validate(data)
        except ValidationError as e:
            raise ManifestCorruptError(f"Manifest {path} failed validation:\n{e}") from e

    def write(self, scope_root: Path, manifest: Manifest) -> Path:
        """Replace the manifest at a scope root.

        Args:
            scope_root: Directory holding the manifest (created if missing)
            manifest: Whole-install snapshot to persist

        Returns:
            Path of the written manifest

        Raises:
            ManifestWriteError: If the manifest or its directory cannot be written
        """
        path = self.path_for(scope_root)
        temp_path = path.with_name(f"{path.name}.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(manifest.model_dump(mode="json"), f, indent=2, ensure_ascii=False)
                f.write("\n")
            temp_path.replace(path)
        except OSError as e:
            _discard(temp_path)
            raise ManifestWriteError(f"Failed to save manifest to {path}: {e}") from e

        logger.debug(f"Saved manifest to {path}")
        return path


def _discard(temp_path: Path) -> None:
    """Remove a leftover temp file without masking the write error."""
    try:
        temp_path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Could not remove temporary file {temp_path}: {e}")
