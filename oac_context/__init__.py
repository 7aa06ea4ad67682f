"""Context acquisition for OAC projects.

Resolves where a project's context (standards and docs) lives and, when it
is missing, installs a profile-sized subset of the upstream context tree
with a sparse git checkout.

Public Interface:
    - InstallService: Install context into a project or global scope
    - DiscoveryService: Resolve a project's content root
    - load_config: Load installer settings
"""

from .config import InstallerSettings
from .config import load_config
from .models import InstallOptions
from .models import InstallScope
from .models import Profile
from .services import DiscoveryService
from .services import InstallService

__version__ = "0.1.0"

__all__ = [
    "DiscoveryService",
    "InstallOptions",
    "InstallScope",
    "InstallService",
    "InstallerSettings",
    "Profile",
    "load_config",
]
