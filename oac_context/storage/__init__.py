"""Storage module for oac_context.

Public Interface:
    - ScopePaths: Filesystem layout of an install scope
    - get_scope_paths: Resolve the layout for a scope
    - get_pointer_path: Pointer file location for a project
"""

from .paths import CONTEXT_DIRNAME
from .paths import MANIFEST_FILENAME
from .paths import POINTER_FILENAME
from .paths import ScopePaths
from .paths import get_pointer_path
from .paths import get_scope_paths

__all__ = [
    "CONTEXT_DIRNAME",
    "MANIFEST_FILENAME",
    "POINTER_FILENAME",
    "ScopePaths",
    "get_scope_paths",
    "get_pointer_path",
]
