"""Shared helpers for repository references and scope locking."""

from .git_url import ParsedRepository
from .git_url import parse_repository
from .git_url import registry_location
from .locking import scope_lock

__all__ = [
    "ParsedRepository",
    "parse_repository",
    "registry_location",
    "scope_lock",
]
