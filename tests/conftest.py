"""
Shared pytest fixtures for the oac_context test suite.

Provides fixtures for:
- Isolated project and global roots
- Sample registry documents
- Recording reporter and in-memory fakes for the registry and transport
"""

import os
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import pytest

from oac_context.config.settings import InstallerSettings
from oac_context.models.registry import Registry
from oac_context.services.sparse_checkout import SparseCheckoutResult

SOURCE_PATH = ".opencode/context"

# Upstream content tree below .opencode/context
UPSTREAM_FILES: dict[str, str] = {
    "navigation.md": "# Context navigation\n",
    "core/standards/code.md": "# Code standards\n",
    "core/standards/tests.md": "# Test standards\n",
    "core/workflows/review.md": "# Review workflow\n",
    "openagents-repo/guide.md": "# Repository guide\n",
    "ui/patterns.md": "# UI patterns\n",
    "data/pipelines.md": "# Data pipelines\n",
}


def make_component(component_id: str, path: str, category: str, **extra: Any) -> dict[str, Any]:
    return {
        "id": component_id,
        "name": component_id.replace("-", " ").title(),
        "type": "context",
        "path": path,
        "category": category,
        **extra,
    }


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep OAC_* variables, .env files and plugin roots out of tests."""
    for key in list(os.environ):
        if key.startswith("OAC_"):
            monkeypatch.delenv(key)
    monkeypatch.delenv("CLAUDE_PLUGIN_ROOT", raising=False)
    workdir = tmp_path / "cwd"
    workdir.mkdir()
    monkeypatch.chdir(workdir)


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def global_root(tmp_path: Path) -> Path:
    return tmp_path / "home" / ".claude"


@pytest.fixture
def settings(tmp_path: Path, project_root: Path, global_root: Path) -> InstallerSettings:
    """Settings rooted entirely inside tmp_path."""
    return InstallerSettings(
        project_root=project_root,
        global_root=global_root,
        plugin_root=None,
        scratch_root=tmp_path / "scratch",
        lock_timeout=1.0,
    )


@pytest.fixture
def registry_data() -> dict[str, Any]:
    """Registry document with one context component per category."""
    return {
        "version": "2.1.0",
        "schema_version": "1",
        "repository": "darrenhinde/OpenAgentsControl",
        "categories": {
            "essential": "Must-have context",
            "core": "Core standards",
            "standard": "Typical project context",
            "extended": "Advanced features",
            "specialized": "Domain specific",
        },
        "components": {
            "agents": [make_component("openagent", ".opencode/agent/openagent.md", "core", type="agent")],
            "contexts": [
                make_component("core-standards", f"{SOURCE_PATH}/core/standards/code.md", "essential"),
                make_component("test-standards", f"{SOURCE_PATH}/core/standards/tests.md", "core"),
                make_component("core-workflows", f"{SOURCE_PATH}/core/workflows/review.md", "core"),
                make_component("openagents-repo", f"{SOURCE_PATH}/openagents-repo/guide.md", "standard"),
                make_component("ui-patterns", f"{SOURCE_PATH}/ui/patterns.md", "extended"),
                make_component("data-pipelines", f"{SOURCE_PATH}/data/pipelines.md", "specialized"),
            ],
        },
    }


@pytest.fixture
def registry(registry_data: dict[str, Any]) -> Registry:
    return Registry.model_validate(registry_data)


class RecordingReporter:
    """Reporter that keeps every message for assertions."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def _record(self, level: str, message: str) -> None:
        self.messages.append((level, message))

    def header(self, message: str) -> None:
        self._record("header", message)

    def info(self, message: str) -> None:
        self._record("info", message)

    def success(self, message: str) -> None:
        self._record("success", message)

    def warning(self, message: str) -> None:
        self._record("warning", message)

    def error(self, message: str) -> None:
        self._record("error", message)

    def detail(self, message: str) -> None:
        self._record("detail", message)

    def text(self, level: str | None = None) -> str:
        return "\n".join(m for lvl, m in self.messages if level is None or lvl == level)


class FakeRegistryService:
    """Registry service returning a fixed registry and counting fetches."""

    def __init__(self, registry: Registry) -> None:
        self.registry = registry
        self.fetch_count = 0

    def describe_source(self) -> str:
        return "test registry"

    def fetch(self) -> Registry:
        self.fetch_count += 1
        return self.registry


class FakeTransport:
    """Transport that materializes the upstream tree for the requested directories.

    Mirrors cone-mode sparse checkout: files directly under the content root
    are always included, deeper files only when their directory was requested.
    """

    def __init__(self, files: dict[str, str] | None = None, commit: str = "0123456789abcdef0123456789abcdef01234567"):
        self.files = dict(UPSTREAM_FILES if files is None else files)
        self.commit = commit
        self.calls: list[dict[str, Any]] = []

    def fetch_paths(
        self,
        repository: str,
        branch: str,
        paths: Iterable[str],
        target_dir: Path,
        scratch_dir: Path | None = None,
    ) -> SparseCheckoutResult:
        requested = [p.removeprefix(f"{SOURCE_PATH}/") for p in paths]
        self.calls.append({"repository": repository, "branch": branch, "paths": list(paths), "target": target_dir})

        copied = 0
        for relative, content in self.files.items():
            directory = relative.rsplit("/", 1)[0] if "/" in relative else ""
            if directory and not any(directory == r or directory.startswith(f"{r}/") for r in requested):
                continue
            destination = target_dir / relative
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_text(content)
            copied += 1

        return SparseCheckoutResult(commit=self.commit, files_copied=copied, target_dir=target_dir)


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def fake_registry_service(registry: Registry) -> FakeRegistryService:
    return FakeRegistryService(registry)


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


def snapshot_tree(root: Path) -> dict[str, bytes]:
    """Map every file under root to its bytes."""
    if not root.exists():
        return {}
    return {str(p.relative_to(root)): p.read_bytes() for p in sorted(root.rglob("*")) if p.is_file()}


@pytest.fixture
def snapshot():
    return snapshot_tree


@pytest.fixture
def make_transport():
    return FakeTransport
