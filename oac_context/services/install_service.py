"""Install orchestration.

Composes registry fetch, filtering, sparse transport and manifest storage
into one install operation:

1. Verify git is available
2. Idempotency gate: an existing manifest short-circuits unless forced
3. Fetch the registry and select components
4. Dry run: report the selection and the would-be manifest, write nothing
5. Sparse fetch, build the manifest, persist it
6. Project scope: write the pointer file if missing
7. Verify every manifested file exists

Steps 2-6 of a real install run under an exclusive lock on the scope root.
"""

import logging
from pathlib import Path

from oac_context.config.settings import InstallerSettings
from oac_context.errors import ContextInstallError
from oac_context.models.install import InstallOptions
from oac_context.models.install import InstallResult
from oac_context.models.install import InstallScope
from oac_context.models.install import InstallStatus
from oac_context.models.install import VerificationReport
from oac_context.models.manifest import DRY_RUN_COMMIT
from oac_context.models.manifest import Manifest
from oac_context.models.manifest import ManifestComponent
from oac_context.models.manifest import ManifestSource
from oac_context.models.registry import CUSTOM_PROFILE
from oac_context.models.registry import Component
from oac_context.models.registry import Registry
from oac_context.reporting import LoggingReporter
from oac_context.reporting import Reporter
from oac_context.services.manifest_store import ManifestStore
from oac_context.services.pointer_store import PointerStore
from oac_context.services.registry_service import RegistryService
from oac_context.services.registry_service import filter_by_ids
from oac_context.services.registry_service import filter_by_profile
from oac_context.services.registry_service import unique_paths
from oac_context.services.sparse_checkout import SparseCheckoutService
from oac_context.services.sparse_checkout import ensure_git_available
from oac_context.storage.paths import ScopePaths
from oac_context.storage.paths import get_scope_paths
from oac_context.utils.locking import scope_lock

logger = logging.getLogger(__name__)


def verify_manifest(manifest: Manifest) -> VerificationReport:
    """Check that every manifested local path exists.

    Args:
        manifest: Installed manifest

    Returns:
        Counts of found files and the ids of missing ones
    """
    report = VerificationReport()
    for component in manifest.context:
        if Path(component.local_path).exists():
            report.found += 1
        else:
            report.missing.append(component.id)
    return report


class InstallService:
    """Service that installs context content into a scope."""

    def __init__(
        self,
        settings: InstallerSettings,
        reporter: Reporter | None = None,
        registry_service: RegistryService | None = None,
        transport: SparseCheckoutService | None = None,
        manifest_store: ManifestStore | None = None,
        pointer_store: PointerStore | None = None,
    ) -> None:
        """Initialize install service.

        Args:
            settings: Installer settings
            reporter: Progress sink (default: logging)
            registry_service: Registry fetcher
            transport: Sparse checkout transport
            manifest_store: Manifest persistence
            pointer_store: Pointer file persistence
        """
        self.settings = settings
        self.reporter = reporter or LoggingReporter()
        self.registry_service = registry_service or RegistryService(settings)
        self.transport = transport or SparseCheckoutService(settings)
        self.manifest_store = manifest_store or ManifestStore()
        self.pointer_store = pointer_store or PointerStore()

    def install(self, options: InstallOptions) -> InstallResult:
        """Install context for the requested profile or component ids.

        Args:
            options: Profile/ids, scope, and dry-run/force/verbose flags

        Returns:
            InstallResult describing what happened

        Raises:
            ContextInstallError: On any fatal environment, fetch, validation,
                                 transport or layout error
        """
        ensure_git_available()
        paths = get_scope_paths(self.settings, options.scope)

        if options.dry_run:
            return self._install(options, paths)

        with scope_lock(
            paths.lock_path,
            timeout=self.settings.lock_timeout,
            stale_seconds=self.settings.lock_stale_seconds,
        ):
            return self._install(options, paths)

    def _install(self, options: InstallOptions, paths: ScopePaths) -> InstallResult:
        if not options.force and self.manifest_store.exists(paths.scope_root):
            return self._already_installed(paths)

        profile_label = CUSTOM_PROFILE if options.is_custom else options.profile.value

        self.reporter.header("Context Installer")
        self.reporter.info(f"Scope:      {paths.label}")
        self.reporter.info(f"Profile:    {profile_label}")
        self.reporter.info(f"Repository: {self.settings.repository}")
        self.reporter.info(f"Branch:     {self.settings.branch}")
        self.reporter.info(f"Target:     {paths.context_dir}")
        if options.dry_run:
            self.reporter.info("Dry run:    yes")

        self.reporter.info(f"Fetching registry from {self.registry_service.describe_source()}...")
        registry = self.registry_service.fetch()
        self.reporter.success(f"Registry version: {registry.version}")
        self.reporter.success(f"Context components available: {len(registry.components.contexts)}")

        components = self._select(registry, options)
        manifest_components = [self._manifest_component(c, paths.context_dir) for c in components]
        sparse_paths = unique_paths(components)

        if options.verbose:
            self.reporter.info("Components to install:")
            for component in components:
                self.reporter.detail(f"{component.id}: {component.path}")
            self.reporter.info("Sparse checkout paths:")
            for sparse_path in sparse_paths:
                self.reporter.detail(sparse_path)

        if options.dry_run:
            self.reporter.info("Dry run - no files will be downloaded")
            manifest = Manifest(
                profile=profile_label,
                source=self._source(DRY_RUN_COMMIT),
                context=manifest_components,
            )
            return InstallResult(
                status=InstallStatus.DRY_RUN,
                manifest=manifest,
                scope=paths.scope,
                context_dir=paths.context_dir,
                manifest_path=paths.manifest_path,
                sparse_paths=sparse_paths,
            )

        self.reporter.info("Downloading context files...")
        checkout = self.transport.fetch_paths(
            self.settings.repository,
            self.settings.branch,
            sparse_paths,
            paths.context_dir,
        )
        self.reporter.success(f"Downloaded commit {checkout.commit[:12]} ({checkout.files_copied} files)")
        self.reporter.success(f"Files copied to: {paths.context_dir}")

        manifest = Manifest(
            profile=profile_label,
            source=self._source(checkout.commit),
            context=manifest_components,
        )
        manifest_path = self.manifest_store.write(paths.scope_root, manifest)
        self.reporter.success(f"Manifest created: {manifest_path}")

        pointer_written = self._write_pointer(paths)

        verification = verify_manifest(manifest)
        self._report_verification(verification, options.verbose)

        self.reporter.success("Context installation complete!")
        return InstallResult(
            status=InstallStatus.INSTALLED,
            manifest=manifest,
            scope=paths.scope,
            context_dir=paths.context_dir,
            manifest_path=manifest_path,
            pointer_written=pointer_written,
            verification=verification,
            sparse_paths=sparse_paths,
        )

    def _already_installed(self, paths: ScopePaths) -> InstallResult:
        manifest = self.manifest_store.read(paths.scope_root)
        self.reporter.warning(f"Context already installed at {paths.label}. Use --force to reinstall.")
        self.reporter.info(f"Profile:   {manifest.profile}")
        self.reporter.info(f"Commit:    {manifest.source.commit}")
        self.reporter.info(f"Installed: {manifest.source.downloaded_at}")
        self.reporter.info(f"Manifest:  {paths.manifest_path}")
        return InstallResult(
            status=InstallStatus.ALREADY_INSTALLED,
            manifest=manifest,
            scope=paths.scope,
            context_dir=paths.context_dir,
            manifest_path=paths.manifest_path,
        )

    def _select(self, registry: Registry, options: InstallOptions) -> list[Component]:
        if options.is_custom:
            self.reporter.info("Filtering by custom component IDs...")
            components = filter_by_ids(registry, options.component_ids)
            found = {c.id for c in components}
            unknown = [cid for cid in dict.fromkeys(options.component_ids) if cid not in found]
            if unknown:
                self.reporter.warning(f"{len(unknown)} requested component(s) not in registry: {', '.join(unknown)}")
        else:
            self.reporter.info(f"Filtering by profile: {options.profile.value}")
            components = filter_by_profile(registry, options.profile)

        if not components:
            raise ContextInstallError(
                "No context components matched the request.",
                remediation="Check the component ids or choose a larger profile (see --help).",
            )

        self.reporter.success(f"Selected {len(components)} components")
        return components

    def _manifest_component(self, component: Component, context_dir: Path) -> ManifestComponent:
        relative = component.path.removeprefix(f"{self.settings.context_source_path}/")
        return ManifestComponent(
            id=component.id,
            name=component.name,
            path=component.path,
            local_path=str(context_dir / relative),
            category=component.category,
        )

    def _source(self, commit: str) -> ManifestSource:
        return ManifestSource(
            repository=self.settings.repository,
            branch=self.settings.branch,
            commit=commit,
        )

    def _write_pointer(self, paths: ScopePaths) -> bool:
        if paths.scope is InstallScope.GLOBAL or paths.project_root is None or paths.pointer_root is None:
            self.reporter.info("Global install - no pointer file needed (discovery finds the global root)")
            return False

        written = self.pointer_store.write(paths.project_root, paths.pointer_root)
        if written:
            self.reporter.success(f"{paths.pointer_path.name} created at project root -> context.root = {paths.pointer_root}")
        else:
            self.reporter.info(f"{paths.pointer_path.name} already exists - skipping")
        return written

    def _report_verification(self, verification: VerificationReport, verbose: bool) -> None:
        self.reporter.info(f"Files verified: {verification.found}/{verification.total}")
        if verification.ok:
            return
        self.reporter.warning(f"Missing files: {len(verification.missing)}")
        if verbose:
            for component_id in verification.missing:
                self.reporter.detail(f"{component_id}: MISSING")
