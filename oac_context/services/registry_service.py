"""Registry service.

Fetches registry.json from the network or a local file, validates it, and
filters context components down to a profile or an explicit id list.
The registry is fetched fresh on every call and never cached.
"""

import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import httpx
from git import GitCommandError
from git import Repo
from git.exc import GitError
from pydantic import ValidationError

from oac_context.config.settings import InstallerSettings
from oac_context.errors import LocalRegistryError
from oac_context.errors import NetworkFetchError
from oac_context.errors import RegistryValidationError
from oac_context.models.registry import Component
from oac_context.models.registry import Profile
from oac_context.models.registry import Registry
from oac_context.utils.git_url import REGISTRY_FILENAME
from oac_context.utils.git_url import registry_location

logger = logging.getLogger(__name__)


class RegistryService:
    """Service for retrieving and validating the component registry."""

    def __init__(self, settings: InstallerSettings, http_client: httpx.Client | None = None) -> None:
        """Initialize registry service.

        Args:
            settings: Installer settings (repository, branch, registry overrides)
            http_client: Optional client, mainly for tests; one is created per
                         fetch otherwise
        """
        self.settings = settings
        self.http_client = http_client

    def describe_source(self) -> str:
        """Human-readable registry location for progress messages."""
        if self.settings.registry_file is not None:
            return str(self.settings.registry_file)
        if self.settings.registry_url:
            return self.settings.registry_url
        try:
            location = registry_location(self.settings.repository, self.settings.branch)
        except ValueError:
            return f"{self.settings.repository} (no registry location)"
        if isinstance(location, Path):
            return f"{location} ({self.settings.branch}:{REGISTRY_FILENAME})"
        return location

    def fetch(self) -> Registry:
        """Fetch and validate the registry from the configured source.

        Returns:
            Validated registry

        Raises:
            NetworkFetchError: Host unreachable or non-success response
            LocalRegistryError: Local registry file or repository branch missing or unreadable
            RegistryValidationError: Document does not match the registry schema
        """
        if self.settings.registry_file is not None:
            return self.load_local(self.settings.registry_file)

        if self.settings.registry_url:
            return self.fetch_remote(self.settings.registry_url)

        try:
            location = registry_location(self.settings.repository, self.settings.branch)
        except ValueError as e:
            raise NetworkFetchError(str(e), remediation="Set registry_url (OAC_REGISTRY_URL) or --registry-file.") from e

        if isinstance(location, Path):
            return self.load_from_repository(location, self.settings.branch)
        return self.fetch_remote(location)

    def fetch_remote(self, url: str) -> Registry:
        """Fetch the registry over HTTP.

        Args:
            url: Registry JSON URL

        Returns:
            Validated registry
        """
        logger.info(f"Fetching registry from {url}")
        try:
            if self.http_client is not None:
                response = self.http_client.get(url)
            else:
                with httpx.Client(timeout=self.settings.http_timeout, follow_redirects=True) as client:
                    response = client.get(url)
        except httpx.HTTPError as e:
            raise NetworkFetchError(f"Failed to reach registry at {url}: {e}") from e

        if not response.is_success:
            raise NetworkFetchError(
                f"Failed to fetch registry: {response.status_code} {response.reason_phrase} ({url})"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise RegistryValidationError(f"Registry at {url} is not valid JSON: {e}") from e

        return self.parse(data, origin=url)

    def load_local(self, path: Path) -> Registry:
        """Load the registry from a local file.

        Args:
            path: Registry JSON file

        Returns:
            Validated registry
        """
        logger.info(f"Loading registry from {path}")
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise LocalRegistryError(f"Registry file not found: {path}") from e
        except OSError as e:
            raise LocalRegistryError(f"Failed to read registry file {path}: {e}") from e

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise RegistryValidationError(f"Registry file {path} is not valid JSON: {e}") from e

        return self.parse(data, origin=str(path))

    def load_from_repository(self, repo_path: Path, branch: str) -> Registry:
        """Load the registry committed on a branch of a local repository.

        Reads the committed blob with ``git show``. Uncommitted edits and the
        checked-out branch are ignored.

        Args:
            repo_path: Local repository root
            branch: Branch whose registry.json is read

        Returns:
            Validated registry
        """
        origin = f"{repo_path} ({branch}:{REGISTRY_FILENAME})"
        logger.info(f"Loading registry from {origin}")
        try:
            with Repo(repo_path) as repo:
                content = repo.git.show(f"{branch}:{REGISTRY_FILENAME}")
        except GitCommandError as e:
            stderr = (e.stderr or "").strip()
            raise LocalRegistryError(
                f"Failed to read {REGISTRY_FILENAME} from {origin}: {stderr or e}",
                remediation=f"Commit {REGISTRY_FILENAME} on branch '{branch}' or pass --registry-file.",
            ) from e
        except GitError as e:
            raise LocalRegistryError(f"{repo_path} is not a readable git repository: {e}") from e

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise RegistryValidationError(f"Registry in {origin} is not valid JSON: {e}") from e

        return self.parse(data, origin=origin)

    def parse(self, data: Any, origin: str) -> Registry:
        """Validate raw registry data.

        Args:
            data: Decoded JSON document
            origin: Where the document came from, for error messages

        Returns:
            Validated registry

        Raises:
            RegistryValidationError: On any schema violation
        """
        try:
            registry = Registry.model_validate(data)
        except ValidationError as e:
            raise RegistryValidationError(f"Invalid registry from {origin}:\n{e}") from e

        logger.debug(
            f"Registry {registry.version} (schema {registry.schema_version}) from {origin}: "
            f"{len(registry.components.contexts)} context components"
        )
        return registry


def filter_by_profile(registry: Registry, profile: Profile) -> list[Component]:
    """Select context components allowed by a profile, in registry order.

    Args:
        registry: Validated registry
        profile: Installation profile

    Returns:
        Context components whose category belongs to the profile
    """
    contexts = registry.components.contexts
    categories = profile.categories
    if categories is None:
        return list(contexts)
    return [component for component in contexts if component.category in categories]


def filter_by_ids(registry: Registry, component_ids: Iterable[str]) -> list[Component]:
    """Select context components by id, in registry order.

    Ids missing from the registry are dropped silently; callers compare counts.

    Args:
        registry: Validated registry
        component_ids: Requested component ids

    Returns:
        Matching context components
    """
    wanted = set(component_ids)
    return [component for component in registry.components.contexts if component.id in wanted]


def unique_paths(components: Iterable[Component]) -> list[str]:
    """Collapse component paths to their distinct containing directories.

    Args:
        components: Selected components

    Returns:
        Directories to request from the sparse checkout, first-seen order
    """
    paths: dict[str, None] = {}
    for component in components:
        directory = component.path.rsplit("/", 1)[0] if "/" in component.path else ""
        if directory:
            paths.setdefault(directory, None)
    return list(paths)
