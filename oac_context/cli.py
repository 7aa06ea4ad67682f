"""oac-context CLI.

Provides commands to install context, inspect installed manifests, and
resolve a project's content root.
"""

import logging
import sys
from collections import Counter
from pathlib import Path

import click
from pydantic import ValidationError

from oac_context.config.loader import create_default_config
from oac_context.config.loader import load_config
from oac_context.config.settings import InstallerSettings
from oac_context.errors import ConfigError
from oac_context.errors import ContextInstallError
from oac_context.models.install import InstallOptions
from oac_context.models.install import InstallScope
from oac_context.models.install import InstallStatus
from oac_context.models.registry import Profile
from oac_context.reporting import ConsoleReporter
from oac_context.reporting import Reporter
from oac_context.services.discovery_service import DiscoveryService
from oac_context.services.install_service import InstallService
from oac_context.services.install_service import verify_manifest
from oac_context.services.manifest_store import ManifestStore
from oac_context.services.pointer_store import PointerStore
from oac_context.storage.paths import get_scope_paths

PROFILE_HELP = """\b
Profiles:
  essential     Minimal components for basic functionality
  standard      Standard components for typical use
  extended      Extended components for advanced features
  specialized   Specialized components for specific domains
  all           All available context
"""


def configure_logging(level: str, verbose: bool = False) -> None:
    """Configure root logging for CLI runs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def fail(reporter: Reporter, error: ContextInstallError) -> None:
    """Report a fatal error with its remediation line and exit non-zero."""
    reporter.error(str(error))
    reporter.info(error.remediation)
    sys.exit(1)


def build_settings(ctx: click.Context, **overrides) -> InstallerSettings:
    """Load settings for a command, turning validation failures into ConfigError."""
    config_path: Path | None = ctx.obj.get("config_path") if ctx.obj else None
    project_root = overrides.get("project_root")
    if config_path is None and project_root is not None:
        config_path = Path(project_root) / "oac-context.yaml"
    try:
        return load_config(config_path, **overrides)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration:\n{e}") from e


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: ./oac-context.yaml)",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None):
    """oac-context - install and locate OAC context files."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@cli.command(epilog=PROFILE_HELP)
@click.option("--profile", default=None, help="Installation profile (default: essential)")
@click.option(
    "--component",
    "components",
    multiple=True,
    help="Install a specific component by id (repeatable, overrides --profile)",
)
@click.option("--global", "global_scope", is_flag=True, help="Install to ~/.claude/context (all projects share it)")
@click.option("--dry-run", is_flag=True, help="Show what would be installed without downloading")
@click.option("--force", is_flag=True, help="Reinstall even if context is already installed")
@click.option("-v", "--verbose", is_flag=True, help="Show detailed output")
@click.option("--repository", default=None, help="Content repository (owner/name, URL or local path)")
@click.option("--branch", default=None, help="Branch to install from")
@click.option(
    "--registry-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Read registry.json from a local file",
)
@click.option(
    "--project-root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Project directory (default: current directory)",
)
@click.pass_context
def install(
    ctx: click.Context,
    profile: str | None,
    components: tuple[str, ...],
    global_scope: bool,
    dry_run: bool,
    force: bool,
    verbose: bool,
    repository: str | None,
    branch: str | None,
    registry_file: Path | None,
    project_root: Path | None,
):
    """Download context files into the project or global scope."""
    reporter = ConsoleReporter()
    try:
        settings = build_settings(
            ctx,
            repository=repository,
            branch=branch,
            registry_file=registry_file,
            project_root=project_root,
        )
        configure_logging(settings.log_level, verbose)

        options = InstallOptions(
            component_ids=list(components),
            scope=InstallScope.GLOBAL if global_scope else InstallScope.PROJECT,
            dry_run=dry_run,
            force=force,
            verbose=verbose,
        )
        # --component overrides --profile
        if not components:
            options.profile = Profile.parse(profile or settings.default_profile)
        result = InstallService(settings, reporter=reporter).install(options)
    except ContextInstallError as e:
        fail(reporter, e)
        return

    if result.status is InstallStatus.DRY_RUN:
        reporter.info(f"Would install {len(result.manifest.context)} components:")
        for component in result.manifest.context:
            reporter.detail(f"{component.id} -> {component.local_path}")
    elif result.status is InstallStatus.INSTALLED:
        reporter.info(f"Scope:    {result.scope.value}")
        reporter.info(f"Context:  {result.context_dir}")
        reporter.info(f"Manifest: {result.manifest_path}")


@cli.command()
@click.option(
    "--project-root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Project directory (default: current directory)",
)
@click.option("-v", "--verbose", is_flag=True, help="List missing files")
@click.pass_context
def status(ctx: click.Context, project_root: Path | None, verbose: bool):
    """Show installed context at project and global scope."""
    reporter = ConsoleReporter()
    try:
        settings = build_settings(ctx, project_root=project_root)
    except ContextInstallError as e:
        fail(reporter, e)
        return
    configure_logging(settings.log_level, verbose)
    store = ManifestStore()

    found_any = False
    corrupt = False
    for scope in (InstallScope.PROJECT, InstallScope.GLOBAL):
        paths = get_scope_paths(settings, scope)
        reporter.header(f"Scope: {paths.label}")
        if not store.exists(paths.scope_root):
            reporter.info("Not installed")
            continue

        try:
            manifest = store.read(paths.scope_root)
        except ContextInstallError as e:
            reporter.error(str(e))
            reporter.info(e.remediation)
            corrupt = True
            continue

        found_any = True
        verification = verify_manifest(manifest)
        reporter.info(f"Profile:   {manifest.profile}")
        reporter.info(f"Source:    {manifest.source.repository}@{manifest.source.branch} ({manifest.source.commit[:12]})")
        reporter.info(f"Installed: {manifest.source.downloaded_at}")
        present = Counter(c.category for c in manifest.context if Path(c.local_path).exists())
        for category, count in sorted(present.items()):
            reporter.detail(f"{category}: {count}")
        reporter.info(f"Files verified: {verification.found}/{verification.total}")
        if not verification.ok:
            reporter.warning(f"Missing files: {len(verification.missing)}")
            if verbose:
                for component_id in verification.missing:
                    reporter.detail(f"{component_id}: MISSING")

    if not found_any and not corrupt:
        reporter.warning("No context files found. Run `oac-context install` to set up context.")
    if corrupt:
        sys.exit(1)


@cli.command()
@click.option(
    "--project-root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Project directory (default: current directory)",
)
@click.option("--write-pointer", is_flag=True, help="Persist the resolved root in .oac.json when signalled")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_context
def discover(ctx: click.Context, project_root: Path | None, write_pointer: bool, as_json: bool):
    """Resolve the project's context root."""
    reporter = ConsoleReporter()
    try:
        settings = build_settings(ctx, project_root=project_root)
        configure_logging(settings.log_level)

        result = DiscoveryService(settings).resolve()

        pointer_written = False
        if write_pointer and result.write_pointer and result.pointer_root is not None:
            pointer_written = PointerStore().write(
                settings.project_root, result.pointer_root, overwrite=result.stale_pointer
            )
    except ContextInstallError as e:
        fail(reporter, e)
        return

    if as_json:
        click.echo(result.model_dump_json(indent=2))
        return

    if result.stale_pointer:
        reporter.warning("Pointer file is stale (its root has no index file)")

    if not result.found:
        reporter.warning("No context found.")
        reporter.info("Options:")
        reporter.detail("Install context: oac-context install --profile=standard")
        reporter.detail('Point at existing context: create .oac.json with {"version": "1", "context": {"root": "<dir>"}}')
        reporter.detail("Proceed without project standards")
        return

    reporter.success(f"Context root: {result.context_root}")
    reporter.info(f"Source: {result.source.value}")
    if pointer_written:
        reporter.success(f"Pointer written: context.root = {result.pointer_root}")
    elif result.write_pointer:
        reporter.info("Pointer file can be written: re-run with --write-pointer")


@cli.command("init-config")
@click.option(
    "--project-root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Project directory (default: current directory)",
)
def init_config(project_root: Path | None):
    """Write a commented oac-context.yaml to the project root."""
    config_path = create_default_config(project_root)
    click.echo(f"Config: {config_path}")


def main():
    """Entry point for the oac-context CLI."""
    try:
        cli()
    except KeyboardInterrupt:
        click.echo("\nInterrupted")
        sys.exit(130)


if __name__ == "__main__":
    main()
