"""Exclusive per-scope lock.

Installs targeting the same scope root race on both the manifest and the
content directory, so they are serialized with an O_EXCL lock file. A lock
whose owner process is gone, or that is older than the stale threshold, is
reclaimed.

Removal never trusts an earlier read: the lock file is first renamed aside,
and only deleted when the renamed file still holds the content that was
judged stale (or, on release, the content this holder wrote). Otherwise it
is linked back into place.
"""

import json
import logging
import os
import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC
from datetime import datetime
from pathlib import Path

from oac_context.errors import LockError
from oac_context.errors import LockTimeoutError

logger = logging.getLogger(__name__)


def _read_raw(lock_path: Path) -> str | None:
    """Lock file content, or None when there is no lock file."""
    try:
        return lock_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except OSError:
        return ""


def _parse_owner(raw: str | None) -> dict:
    try:
        owner = json.loads(raw or "")
    except ValueError:
        return {}
    return owner if isinstance(owner, dict) else {}


def _pid_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


def _stale_reason(lock_path: Path, raw: str, stale_seconds: float) -> str | None:
    owner = _parse_owner(raw)
    if not owner:
        try:
            age = time.time() - lock_path.stat().st_mtime
        except FileNotFoundError:
            return None
        # Owner may still be writing its metadata
        return "invalid_metadata" if age > 1.0 else None

    created = owner.get("created_epoch")
    if isinstance(created, (int, float)) and time.time() - created > stale_seconds:
        return "expired"

    pid = owner.get("pid")
    if isinstance(pid, int) and not _pid_alive(pid):
        return "owner_process_missing"
    return None


def _remove_if_unchanged(lock_path: Path, expected: str) -> bool:
    """Delete the lock file only if it still holds ``expected``.

    Returns:
        True if the lock file was removed, False if it was gone or had been
        replaced by another holder (in which case it is restored)
    """
    aside = lock_path.with_name(f"{lock_path.name}.{uuid.uuid4().hex[:8]}.reclaim")
    try:
        os.rename(lock_path, aside)
    except FileNotFoundError:
        return False

    try:
        current = aside.read_text(encoding="utf-8")
    except OSError:
        current = None

    if current == expected:
        aside.unlink(missing_ok=True)
        return True

    try:
        os.link(aside, lock_path)
    except FileExistsError:
        logger.warning(f"Lock {lock_path} was re-acquired while restoring a replaced holder")
    except OSError as e:
        logger.warning(f"Could not restore lock {lock_path}: {e}")
    try:
        aside.unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Could not remove {aside}: {e}")
    return False


@contextmanager
def scope_lock(lock_path: Path, timeout: float = 30.0, stale_seconds: float = 3600.0) -> Iterator[None]:
    """Hold an exclusive lock file for the duration of the block.

    Args:
        lock_path: Lock file to create
        timeout: Seconds to wait for a competing holder
        stale_seconds: Age after which a held lock is reclaimed

    Raises:
        LockTimeoutError: If the lock could not be acquired in time
        LockError: If the lock file cannot be created at all
    """
    token = f"{os.getpid()}-{uuid.uuid4().hex}"
    start = time.monotonic()

    try:
        lock_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise LockError(f"Cannot create lock directory {lock_path.parent}: {e}") from e

    while True:
        try:
            fd = os.open(lock_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o644)
        except FileExistsError:
            raw = _read_raw(lock_path)
            if raw is None:
                continue
            reason = _stale_reason(lock_path, raw, stale_seconds)
            if reason and _remove_if_unchanged(lock_path, raw):
                logger.warning(f"Reclaimed stale lock {lock_path} ({reason})")
                continue
            if time.monotonic() - start >= timeout:
                owner = _parse_owner(_read_raw(lock_path))
                raise LockTimeoutError(
                    f"Timed out waiting for install lock {lock_path} (held by pid {owner.get('pid', 'unknown')})"
                ) from None
            time.sleep(0.1)
            continue
        except OSError as e:
            raise LockError(f"Cannot create lock file {lock_path}: {e}") from e

        payload = json.dumps(
            {
                "token": token,
                "pid": os.getpid(),
                "created_epoch": time.time(),
                "created_at": datetime.now(UTC).isoformat(),
            },
            indent=2,
        )
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
        break

    logger.debug(f"Acquired install lock {lock_path}")
    try:
        yield
    finally:
        if _read_raw(lock_path) != payload or not _remove_if_unchanged(lock_path, payload):
            logger.warning(f"Install lock {lock_path} was taken over by another process before release")
        logger.debug(f"Released install lock {lock_path}")
