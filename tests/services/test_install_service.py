"""
Unit tests for install orchestration.

The registry and the sparse transport are replaced with in-memory fakes, so
these tests exercise gating, manifest construction, pointer handling and
verification without git or network access.
"""

import json
import os
import threading
import time
from pathlib import Path

import pytest

from oac_context.config.settings import InstallerSettings
from oac_context.errors import CloneError
from oac_context.errors import ContextInstallError
from oac_context.errors import LockTimeoutError
from oac_context.errors import ToolUnavailableError
from oac_context.models.install import InstallOptions
from oac_context.models.install import InstallScope
from oac_context.models.install import InstallStatus
from oac_context.models.registry import Profile
from oac_context.services.install_service import InstallService
from oac_context.services.install_service import verify_manifest
from oac_context.services.manifest_store import ManifestStore


@pytest.fixture(autouse=True)
def git_present(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("oac_context.services.install_service.ensure_git_available", lambda: None)


@pytest.fixture
def service(settings, reporter, fake_registry_service, fake_transport) -> InstallService:
    return InstallService(
        settings,
        reporter=reporter,
        registry_service=fake_registry_service,
        transport=fake_transport,
    )


@pytest.mark.unit
class TestInstall:
    """Test a fresh install into the project scope."""

    def test_installs_essential_profile(self, service: InstallService, project_root: Path) -> None:
        result = service.install(InstallOptions())

        assert result.status is InstallStatus.INSTALLED
        assert result.manifest.profile == "essential"
        assert [c.id for c in result.manifest.context] == ["core-standards", "test-standards", "core-workflows"]
        assert result.context_dir == project_root / ".claude" / "context"
        assert (project_root / ".claude" / "context" / "core" / "standards" / "code.md").is_file()
        assert (project_root / ".claude" / "context" / "navigation.md").is_file()
        assert not (project_root / ".claude" / "context" / "ui").exists()

    def test_transport_receives_unique_directories(self, service: InstallService, fake_transport) -> None:
        service.install(InstallOptions(profile=Profile.STANDARD))

        assert fake_transport.calls[0]["paths"] == [
            ".opencode/context/core/standards",
            ".opencode/context/core/workflows",
            ".opencode/context/openagents-repo",
        ]
        assert fake_transport.calls[0]["branch"] == "main"

    def test_manifest_written(self, service: InstallService, project_root: Path, fake_transport) -> None:
        result = service.install(InstallOptions())

        manifest_path = project_root / ".claude" / ".context-manifest.json"
        assert result.manifest_path == manifest_path
        data = json.loads(manifest_path.read_text())
        assert data["source"]["commit"] == fake_transport.commit
        assert data["source"]["repository"] == "darrenhinde/OpenAgentsControl"
        first = data["context"][0]
        assert first["path"] == ".opencode/context/core/standards/code.md"
        assert first["local_path"] == str(project_root / ".claude" / "context" / "core" / "standards" / "code.md")

    def test_manifest_round_trip(self, service: InstallService, project_root: Path) -> None:
        result = service.install(InstallOptions(profile=Profile.EXTENDED))

        assert ManifestStore().read(project_root / ".claude") == result.manifest
        assert all(Path(c.local_path).is_file() for c in result.manifest.context)

    def test_pointer_written(self, service: InstallService, project_root: Path) -> None:
        result = service.install(InstallOptions())

        assert result.pointer_written
        data = json.loads((project_root / ".oac.json").read_text())
        assert data == {"version": "1", "context": {"root": ".claude/context"}}

    def test_existing_pointer_kept(self, service: InstallService, project_root: Path, reporter) -> None:
        (project_root / ".oac.json").write_text('{"version": "1", "context": {"root": "docs"}}')

        result = service.install(InstallOptions())

        assert not result.pointer_written
        assert json.loads((project_root / ".oac.json").read_text())["context"]["root"] == "docs"
        assert "already exists" in reporter.text("info")

    def test_verification_all_present(self, service: InstallService) -> None:
        result = service.install(InstallOptions(profile=Profile.ALL))

        assert result.verification.ok
        assert result.verification.found == 6

    def test_lock_released(self, service: InstallService, project_root: Path) -> None:
        service.install(InstallOptions())

        assert not (project_root / ".claude" / ".context-install.lock").exists()


@pytest.mark.unit
class TestIdempotence:
    """Test the already-installed gate and forced reinstall."""

    def test_second_install_is_noop(
        self, service: InstallService, project_root: Path, fake_registry_service, fake_transport, snapshot
    ) -> None:
        service.install(InstallOptions())
        before = snapshot(project_root)

        result = service.install(InstallOptions(profile=Profile.ALL))

        assert result.status is InstallStatus.ALREADY_INSTALLED
        assert result.manifest.profile == "essential"
        assert snapshot(project_root) == before
        assert fake_registry_service.fetch_count == 1
        assert len(fake_transport.calls) == 1

    def test_already_installed_reports_details(self, service: InstallService, reporter, fake_transport) -> None:
        service.install(InstallOptions())
        reporter.messages.clear()

        service.install(InstallOptions())

        assert "already installed" in reporter.text("warning")
        assert fake_transport.commit in reporter.text("info")

    def test_force_reinstall_restores_content(
        self, service: InstallService, project_root: Path, fake_transport
    ) -> None:
        service.install(InstallOptions())
        installed = project_root / ".claude" / "context" / "core" / "standards" / "code.md"
        installed.write_text("local edit\n")

        result = service.install(InstallOptions(force=True))

        assert result.status is InstallStatus.INSTALLED
        assert installed.read_text() == "# Code standards\n"
        assert len(fake_transport.calls) == 2

    def test_force_replaces_manifest(self, service: InstallService, project_root: Path) -> None:
        service.install(InstallOptions())

        result = service.install(InstallOptions(profile=Profile.STANDARD, force=True))

        data = json.loads((project_root / ".claude" / ".context-manifest.json").read_text())
        assert data["profile"] == "standard"
        assert len(data["context"]) == len(result.manifest.context) == 4


@pytest.mark.unit
class TestDryRun:
    """Test that dry runs report without writing."""

    def test_dry_run_writes_nothing(
        self, service: InstallService, tmp_path: Path, fake_transport, snapshot
    ) -> None:
        before = snapshot(tmp_path)

        result = service.install(InstallOptions(profile=Profile.STANDARD, dry_run=True))

        assert result.status is InstallStatus.DRY_RUN
        assert result.manifest.is_dry_run
        assert snapshot(tmp_path) == before
        assert fake_transport.calls == []

    def test_dry_run_matches_real_selection(self, service: InstallService, settings: InstallerSettings) -> None:
        dry = service.install(InstallOptions(profile=Profile.STANDARD, dry_run=True))
        real = service.install(InstallOptions(profile=Profile.STANDARD))

        assert [c.id for c in dry.manifest.context] == [c.id for c in real.manifest.context]
        assert [c.local_path for c in dry.manifest.context] == [c.local_path for c in real.manifest.context]
        assert dry.sparse_paths == real.sparse_paths

    def test_dry_run_over_existing_install_short_circuits(self, service: InstallService) -> None:
        service.install(InstallOptions())

        result = service.install(InstallOptions(dry_run=True))

        assert result.status is InstallStatus.ALREADY_INSTALLED

    def test_dry_run_verbose_lists_components(self, service: InstallService, reporter) -> None:
        service.install(InstallOptions(dry_run=True, verbose=True))

        details = reporter.text("detail")
        assert "core-standards: .opencode/context/core/standards/code.md" in details
        assert ".opencode/context/core/workflows" in details


@pytest.mark.unit
class TestComponentSelection:
    """Test custom id selection."""

    def test_custom_ids(self, service: InstallService) -> None:
        result = service.install(InstallOptions(profile=Profile.ALL, component_ids=["ui-patterns", "core-standards"]))

        assert result.manifest.profile == "custom"
        assert [c.id for c in result.manifest.context] == ["core-standards", "ui-patterns"]

    def test_unknown_ids_warn(self, service: InstallService, reporter) -> None:
        result = service.install(InstallOptions(component_ids=["core-standards", "nope"]))

        assert len(result.manifest.context) == 1
        assert "nope" in reporter.text("warning")

    def test_no_matches_is_error(self, service: InstallService, project_root: Path) -> None:
        with pytest.raises(ContextInstallError, match="No context components matched"):
            service.install(InstallOptions(component_ids=["nope"]))

        assert not (project_root / ".claude" / ".context-manifest.json").exists()


@pytest.mark.unit
class TestGlobalScope:
    """Test installs into the global scope."""

    def test_global_install(self, service: InstallService, global_root: Path, project_root: Path) -> None:
        result = service.install(InstallOptions(scope=InstallScope.GLOBAL))

        assert result.scope is InstallScope.GLOBAL
        assert result.context_dir == global_root / "context"
        assert (global_root / ".context-manifest.json").is_file()
        assert (global_root / "context" / "core" / "standards" / "code.md").is_file()
        assert not result.pointer_written
        assert not (project_root / ".oac.json").exists()

    def test_scopes_are_independent(self, service: InstallService, global_root: Path) -> None:
        service.install(InstallOptions())

        result = service.install(InstallOptions(scope=InstallScope.GLOBAL))

        assert result.status is InstallStatus.INSTALLED


@pytest.mark.unit
class TestFailures:
    """Test fatal paths."""

    def test_git_missing(self, settings, reporter, fake_registry_service, fake_transport, monkeypatch) -> None:
        def no_git() -> None:
            raise ToolUnavailableError("git is required but not installed.")

        monkeypatch.setattr("oac_context.services.install_service.ensure_git_available", no_git)
        service = InstallService(
            settings, reporter=reporter, registry_service=fake_registry_service, transport=fake_transport
        )

        with pytest.raises(ToolUnavailableError):
            service.install(InstallOptions(dry_run=True))

        assert fake_registry_service.fetch_count == 0

    def test_transport_failure_leaves_no_manifest(
        self, settings, reporter, fake_registry_service, project_root: Path
    ) -> None:
        class FailingTransport:
            def fetch_paths(self, *args, **kwargs):
                raise CloneError("Git sparse clone failed")

        service = InstallService(
            settings, reporter=reporter, registry_service=fake_registry_service, transport=FailingTransport()
        )

        with pytest.raises(CloneError):
            service.install(InstallOptions())

        assert not (project_root / ".claude" / ".context-manifest.json").exists()
        assert not (project_root / ".oac.json").exists()
        assert not (project_root / ".claude" / ".context-install.lock").exists()

    def test_missing_files_are_partial_success(
        self, settings, reporter, fake_registry_service, make_transport
    ) -> None:
        transport = make_transport(files={"navigation.md": "# nav\n", "core/standards/code.md": "# code\n"})
        service = InstallService(settings, reporter=reporter, registry_service=fake_registry_service, transport=transport)

        result = service.install(InstallOptions(verbose=True))

        assert result.status is InstallStatus.INSTALLED
        assert result.verification.found == 1
        assert result.verification.missing == ["test-standards", "core-workflows"]
        assert "Missing files: 2" in reporter.text("warning")
        assert "core-workflows: MISSING" in reporter.text("detail")

    def test_held_lock_times_out(self, service: InstallService, project_root: Path) -> None:
        lock_path = project_root / ".claude" / ".context-install.lock"
        lock_path.parent.mkdir(parents=True)
        lock_path.write_text(
            json.dumps({"token": "other", "pid": os.getpid(), "created_epoch": time.time(), "created_at": "now"})
        )

        with pytest.raises(LockTimeoutError):
            service.install(InstallOptions())

        assert lock_path.exists()


@pytest.mark.unit
class TestConcurrentInstalls:
    """Test two installs racing on the same scope."""

    def test_same_scope_installs_are_serialized(
        self, settings, reporter, fake_registry_service, make_transport, project_root: Path
    ) -> None:
        transport = make_transport()
        state = {"active": 0, "max_active": 0}
        guard = threading.Lock()
        fetch_paths = transport.fetch_paths

        def slow_fetch(*args, **kwargs):
            with guard:
                state["active"] += 1
                state["max_active"] = max(state["max_active"], state["active"])
            try:
                time.sleep(0.2)
                return fetch_paths(*args, **kwargs)
            finally:
                with guard:
                    state["active"] -= 1

        transport.fetch_paths = slow_fetch
        results = []
        errors: list[BaseException] = []

        def run() -> None:
            service = InstallService(
                settings, reporter=reporter, registry_service=fake_registry_service, transport=transport
            )
            try:
                results.append(service.install(InstallOptions()))
            except BaseException as e:
                errors.append(e)

        threads = [threading.Thread(target=run) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert state["max_active"] == 1
        assert sorted(r.status.value for r in results) == ["already_installed", "installed"]
        assert len(transport.calls) == 1
        assert ManifestStore().read(project_root / ".claude").profile == "essential"
        assert not (project_root / ".claude" / ".context-install.lock").exists()


@pytest.mark.unit
def test_verify_manifest(service: InstallService, project_root: Path) -> None:
    result = service.install(InstallOptions())
    (project_root / ".claude" / "context" / "core" / "workflows" / "review.md").unlink()

    report = verify_manifest(result.manifest)

    assert report.found == 2
    assert report.missing == ["core-workflows"]
    assert report.total == 3
    assert not report.ok
