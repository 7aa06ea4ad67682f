"""Sparse content transport.

Downloads only the requested directories of a repository: a depth-1,
blob-filtered, sparse clone into a scratch directory, followed by a copy of
the content subtree into the target directory. The scratch directory is
removed on every exit path.
"""

import logging
import shutil
import tempfile
import uuid
from dataclasses import dataclass
from pathlib import Path

from git import Git
from git import GitCommandError
from git import InvalidGitRepositoryError
from git import Repo

from oac_context.config.settings import InstallerSettings
from oac_context.errors import CloneError
from oac_context.errors import CopyError
from oac_context.errors import LayoutMismatchError
from oac_context.errors import SparseCheckoutError
from oac_context.errors import ToolUnavailableError
from oac_context.utils.git_url import parse_repository

logger = logging.getLogger(__name__)


@dataclass
class SparseCheckoutResult:
    """Outcome of a sparse fetch.

    Attributes:
        commit: Resolved commit of the clone
        files_copied: Number of files copied into the target directory
        target_dir: Directory the content subtree was copied into
    """

    commit: str
    files_copied: int
    target_dir: Path


def git_available() -> bool:
    """Check whether a git executable is on PATH."""
    return shutil.which("git") is not None


def ensure_git_available() -> None:
    """Fail fast when git is missing.

    Raises:
        ToolUnavailableError: If git is not installed
    """
    if not git_available():
        raise ToolUnavailableError("git is required but not installed.")


class SparseCheckoutService:
    """Service for minimal-bandwidth retrieval of repository subtrees."""

    def __init__(self, settings: InstallerSettings) -> None:
        """Initialize sparse checkout service.

        Args:
            settings: Installer settings (content subtree, scratch root, clone timeout)
        """
        self.settings = settings
        self.source_path = settings.context_source_path

    def new_scratch_dir(self) -> Path:
        """Invocation-unique scratch location (not created)."""
        base = self.settings.scratch_root or Path(tempfile.gettempdir())
        return base / f"oac-context-{uuid.uuid4().hex[:8]}"

    def fetch_paths(
        self,
        repository: str,
        branch: str,
        paths: list[str],
        target_dir: Path,
        scratch_dir: Path | None = None,
    ) -> SparseCheckoutResult:
        """Sparse-fetch ``paths`` and copy the content subtree into ``target_dir``.

        Args:
            repository: Repository reference (shorthand, URL, or local path)
            branch: Branch to clone
            paths: Directories to materialize
            target_dir: Destination of the content subtree
            scratch_dir: Scratch location (default: fresh directory under the temp root)

        Returns:
            SparseCheckoutResult with the resolved commit

        Raises:
            ToolUnavailableError: git is not installed
            CloneError: Clone failed (network, auth, missing branch)
            SparseCheckoutError: sparse-checkout configuration failed
            LayoutMismatchError: Content subtree absent after the clone
        """
        ensure_git_available()
        scratch_dir = scratch_dir or self.new_scratch_dir()

        try:
            commit = self.sparse_clone(repository, branch, paths, scratch_dir)
            files_copied = self.copy_subtree(scratch_dir, target_dir)
        finally:
            self.cleanup(scratch_dir)

        return SparseCheckoutResult(commit=commit, files_copied=files_copied, target_dir=target_dir)

    def sparse_clone(self, repository: str, branch: str, paths: list[str], scratch_dir: Path) -> str:
        """Clone with depth 1, blob filtering and sparse mode, then set the path set.

        Args:
            repository: Repository reference
            branch: Branch to clone
            paths: Sparse-checkout directory set
            scratch_dir: Clone destination; removed first if present

        Returns:
            Commit SHA of the clone's HEAD

        Raises:
            CloneError: Scratch preparation or the clone itself failed
            SparseCheckoutError: sparse-checkout configuration failed
        """
        try:
            if scratch_dir.exists():
                shutil.rmtree(scratch_dir)
            scratch_dir.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CloneError(f"Cannot prepare scratch directory {scratch_dir}: {e}") from e

        clone_url = parse_repository(repository).clone_url
        logger.info(f"Cloning {clone_url} branch={branch} (sparse) into {scratch_dir}")

        try:
            Git(str(scratch_dir.parent)).clone(
                "--depth=1",
                "--filter=blob:none",
                "--sparse",
                "--branch",
                branch,
                clone_url,
                str(scratch_dir),
                kill_after_timeout=self.settings.clone_timeout,
            )
        except GitCommandError as e:
            raise CloneError(
                f"Git sparse clone failed for {clone_url} (branch {branch}): {_git_error_text(e)}"
            ) from e

        try:
            repo = Repo(scratch_dir)
        except InvalidGitRepositoryError as e:
            raise CloneError(f"Clone of {clone_url} did not produce a repository at {scratch_dir}") from e

        with repo:
            logger.debug(f"Configuring sparse checkout: {paths}")
            try:
                repo.git.sparse_checkout("set", *paths)
            except GitCommandError as e:
                raise SparseCheckoutError(f"git sparse-checkout set failed: {_git_error_text(e)}") from e
            commit = repo.head.commit.hexsha

        logger.info(f"Downloaded commit: {commit}")
        return commit

    def copy_subtree(self, scratch_dir: Path, target_dir: Path) -> int:
        """Copy the content subtree of a checkout into the target directory.

        Existing files in the target are overwritten with the checked-out
        versions.

        Args:
            scratch_dir: Checkout root
            target_dir: Destination directory (created with parents)

        Returns:
            Number of files copied

        Raises:
            LayoutMismatchError: If the content subtree is absent
            CopyError: If the target directory cannot be created or written
        """
        source_dir = scratch_dir / self.source_path
        if not source_dir.is_dir():
            raise LayoutMismatchError(f"Context directory '{self.source_path}' not found in repository checkout")

        logger.info(f"Copying files from {source_dir} to {target_dir}")
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            shutil.copytree(source_dir, target_dir, dirs_exist_ok=True)
        except OSError as e:
            raise CopyError(f"Failed to copy context files into {target_dir}: {e}") from e

        return sum(1 for path in source_dir.rglob("*") if path.is_file())

    def cleanup(self, scratch_dir: Path) -> None:
        """Remove a scratch directory if it exists."""
        if scratch_dir.exists():
            logger.debug(f"Cleaning up {scratch_dir}")
            shutil.rmtree(scratch_dir, ignore_errors=True)


def _git_error_text(error: GitCommandError) -> str:
    stderr = (error.stderr or "").strip()
    return stderr or str(error)
