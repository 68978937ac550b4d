"""Scoped resources of a run: process lock, workspace mount, transient snapshot.

Each guard is a context manager whose release runs on every exit path,
including exceptions raised inside the ``with`` block.
"""

import contextlib
import logging
from pathlib import Path

from filelock import FileLock, Timeout

from .. import __util__

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def process_lock(path):
    """Hold the single-instance lock at ``path`` for the duration of the block.

    Never waits: a lock held by another run raises LockAlreadyHeld.

    Raises:
        LockAlreadyHeld: Another run holds the lock.
        LockError: The lock file cannot be created or locked.
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        lock = FileLock(path, timeout=0)
        lock.acquire()
    except Timeout as e:
        raise __util__.LockAlreadyHeld(
            f"Another run is active (lock held: {path})"
        ) from e
    except OSError as e:
        raise __util__.LockError(f"Cannot obtain lock {path}: {e}") from e

    logger.debug("Acquired lock %s", path)
    try:
        yield lock
    finally:
        lock.release()
        logger.debug("Released lock %s", path)


@contextlib.contextmanager
def workspace_mount(local, work_dir, logical_base):
    """Bind ``work_dir`` at ``logical_base`` and unmount it when leaving."""
    local.makedirs(work_dir)
    local.makedirs(logical_base)
    local.bind_mount(work_dir, logical_base)
    logger.info("Mounted workspace %s at %s", work_dir, logical_base)
    try:
        yield Path(logical_base)
    except BaseException:
        _release_after_error(local.unmount, logical_base)
        raise
    local.unmount(logical_base)
    logger.debug("Unmounted %s", logical_base)


@contextlib.contextmanager
def transient_artifact(local, snapshot, destination):
    """Provide a writable copy of ``snapshot`` at ``destination`` for one backup."""
    destination = Path(destination)
    local.makedirs(destination.parent)
    if local.exists(destination):
        logger.warning("Removing stale snapshot left by an earlier run: %s", destination)
        local.delete_subvolume(destination)

    local.create_snapshot(snapshot.path, destination)
    logger.debug("Created transient snapshot %s", destination)
    try:
        yield destination
    except BaseException:
        _release_after_error(local.delete_subvolume, destination)
        raise
    local.delete_subvolume(destination)
    logger.debug("Deleted transient snapshot %s", destination)


def _release_after_error(release, path):
    # the error already propagating stays the one reported
    try:
        release(path)
    except __util__.FileSystemError as e:
        logger.error("Cleanup of %s failed: %s", path, e)
