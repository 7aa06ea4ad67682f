"""Data models for context acquisition."""

from .discovery import DiscoveryCandidate
from .discovery import DiscoveryResult
from .discovery import DiscoverySource
from .discovery import PointerConfig
from .discovery import PointerContext
from .install import InstallOptions
from .install import InstallResult
from .install import InstallScope
from .install import InstallStatus
from .install import VerificationReport
from .manifest import Manifest
from .manifest import ManifestComponent
from .manifest import ManifestSource
from .registry import CUSTOM_PROFILE
from .registry import Component
from .registry import Profile
from .registry import Registry
from .registry import RegistryComponents

__all__ = [
    "CUSTOM_PROFILE",
    "Component",
    "DiscoveryCandidate",
    "DiscoveryResult",
    "DiscoverySource",
    "InstallOptions",
    "InstallResult",
    "InstallScope",
    "InstallStatus",
    "Manifest",
    "ManifestComponent",
    "ManifestSource",
    "PointerConfig",
    "PointerContext",
    "Profile",
    "Registry",
    "RegistryComponents",
    "VerificationReport",
]
