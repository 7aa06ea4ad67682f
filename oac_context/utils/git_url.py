"""Repository reference parsing.

Shared logic for turning a repository setting into a clone URL and a
registry location.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

GITHUB_CLONE_URL = "https://github.com/{repository}.git"
GITHUB_RAW_URL = "https://raw.githubusercontent.com/{repository}/{branch}/{filename}"
REGISTRY_FILENAME = "registry.json"

_SHORTHAND = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")
_REMOTE_PREFIXES = ("https://", "http://", "ssh://", "git://", "file://", "git@")


@dataclass
class ParsedRepository:
    """Parsed repository reference.

    Attributes:
        clone_url: URL handed to git clone
        shorthand: owner/name when the reference is a GitHub shorthand
        local_path: Working tree path when the reference is a local repository
    """

    clone_url: str
    shorthand: str | None = None
    local_path: Path | None = None


def parse_repository(repository: str) -> ParsedRepository:
    """Parse a repository reference.

    Handles all variations:
    - owner/name (GitHub shorthand)
    - git+https://host/owner/name
    - https://, ssh://, git@ URLs
    - local paths (converted to file:// so shallow and filtered clones apply)

    Args:
        repository: Repository reference

    Returns:
        ParsedRepository with extracted components

    Examples:
        >>> parse_repository("darrenhinde/OpenAgentsControl").clone_url
        'https://github.com/darrenhinde/OpenAgentsControl.git'

        >>> parse_repository("git+https://example.com/org/repo.git").clone_url
        'https://example.com/org/repo.git'
    """
    source = repository.removeprefix("git+")

    if source.startswith(_REMOTE_PREFIXES):
        if source.startswith("file://"):
            return ParsedRepository(clone_url=source, local_path=Path(source[len("file://") :]))
        return ParsedRepository(clone_url=source)

    candidate = Path(source).expanduser()
    if _SHORTHAND.match(source) and not candidate.exists():
        return ParsedRepository(clone_url=GITHUB_CLONE_URL.format(repository=source), shorthand=source)

    local_path = candidate.resolve()
    return ParsedRepository(clone_url=local_path.as_uri(), local_path=local_path)


def registry_location(repository: str, branch: str) -> str | Path:
    """Where the registry document lives for a repository.

    Args:
        repository: Repository reference
        branch: Branch name

    Returns:
        Raw-content URL for GitHub shorthands. For local repositories, the
        repository root; the registry is then read from the branch with
        ``git show <branch>:registry.json``, not from the working tree

    Raises:
        ValueError: If the registry location cannot be derived
    """
    parsed = parse_repository(repository)
    if parsed.shorthand:
        return GITHUB_RAW_URL.format(repository=parsed.shorthand, branch=branch, filename=REGISTRY_FILENAME)
    if parsed.local_path is not None:
        return parsed.local_path
    raise ValueError(
        f"Cannot derive a registry URL for repository '{repository}'. Set registry_url or registry_file explicitly."
    )
