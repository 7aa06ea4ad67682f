"""Services for context acquisition and discovery."""

from .discovery_service import DiscoveryService
from .install_service import InstallService
from .install_service import verify_manifest
from .manifest_store import ManifestStore
from .pointer_store import PointerStore
from .registry_service import RegistryService
from .registry_service import filter_by_ids
from .registry_service import filter_by_profile
from .registry_service import unique_paths
from .sparse_checkout import SparseCheckoutService

__all__ = [
    "DiscoveryService",
    "InstallService",
    "ManifestStore",
    "PointerStore",
    "RegistryService",
    "SparseCheckoutService",
    "filter_by_ids",
    "filter_by_profile",
    "unique_paths",
    "verify_manifest",
]
