"""Core backup operations: plan and execute backups of new snapshots.

A run holds the process lock, mounts the workspace, reads the backup state
once, then walks the snapshot directories in the given order. For every
subvolume whose newest snapshot is strictly newer than its last backup, a
transient writable snapshot is placed at ``/<base>/<directory>/<subvolume>``
and backed up with the snapshot's capture time. Retention runs last.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .. import __util__, endpoint, logical_path
from ..config import RunConfig
from .catalog import SnapshotInstance, latest_per_subvolume
from .guards import process_lock, transient_artifact, workspace_mount
from .retention import RetentionResult, enforce_retention
from .state import latest_backups

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BackupPlan:
    """Backup decision for the newest snapshot of one subvolume."""

    directory: str
    snapshot: SnapshotInstance
    path: str
    last_backup: Optional[datetime]

    @property
    def needed(self) -> bool:
        """Back up iff the snapshot is strictly newer than the last backup."""
        return self.last_backup is None or self.snapshot.timestamp > self.last_backup

    @property
    def last_backup_text(self) -> str:
        # an absent backup renders empty and so sorts before any timestamp
        if self.last_backup is None:
            return ""
        return __util__.format_timestamp(self.last_backup)


@dataclass
class RunResult:
    """Summary of a reconciliation run."""

    backed_up: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    retention: Optional[RetentionResult] = None


def plan_directory(local, directory, logical_base, backups) -> list[BackupPlan]:
    """Compare the newest snapshots in ``directory`` with the known backups.

    Args:
        local: Local endpoint used to list the directory
        directory: Snapshot directory path
        logical_base: Mount point of the workspace
        backups: Mapping of logical path to latest backup time

    Returns:
        One BackupPlan per subvolume, in catalog order
    """
    name = directory.name
    plans = []
    for subvolume, snapshot in latest_per_subvolume(local, directory).items():
        path = logical_path(logical_base, name, subvolume)
        plans.append(
            BackupPlan(
                directory=name,
                snapshot=snapshot,
                path=path,
                last_backup=backups.get(path),
            )
        )
    return plans


def backup_snapshot(local, restic, plan: BackupPlan, host: str) -> None:
    """Back up the snapshot of ``plan`` through a transient writable snapshot."""
    logger.info(
        "Backing up %s as %s (%s)",
        plan.snapshot.name,
        plan.path,
        plan.snapshot.timestamp_text,
    )
    with transient_artifact(local, plan.snapshot, plan.path) as artifact:
        restic.backup(artifact, plan.snapshot.timestamp, host)


def sync_directory(local, restic, directory, config: RunConfig, backups, result):
    """Back up every subvolume of ``directory`` that has a new snapshot."""
    for plan in plan_directory(local, directory, config.logical_base, backups):
        if not plan.needed:
            logger.info(
                "%s is up to date (last backup %s)", plan.path, plan.last_backup_text
            )
            result.skipped.append(plan.path)
            continue
        backup_snapshot(local, restic, plan, config.host)
        result.backed_up.append(plan.path)


def check_snapshot_dirs(local, config: RunConfig) -> None:
    """Fail before any mount if a snapshot directory is missing."""
    for directory in config.snapshot_dirs:
        if not local.exists(directory):
            raise __util__.ConfigError(
                f"Snapshot directory does not exist: {directory}"
            )


def reconcile(local, restic, config: RunConfig) -> RunResult:
    """Back up new snapshots and apply retention; the workspace must be mounted."""
    result = RunResult()
    backups = latest_backups(restic, config.host)

    for directory in config.snapshot_dirs:
        logger.info(__util__.log_heading(f"Directory: {directory}"))
        sync_directory(local, restic, directory, config, backups, result)

    result.retention = enforce_retention(
        restic,
        config.retention,
        config.host,
        config.logical_base,
        config.directory_names(),
    )
    return result


def run_reconciliation(config: RunConfig, local=None, restic=None) -> RunResult:
    """Entry point of a backup run.

    Args:
        config: Resolved run configuration
        local: Local endpoint (created from ``config`` when omitted)
        restic: Restic endpoint (created from ``config`` when omitted)

    Raises:
        AbortError: Any failure; lock and mount are released first.
    """
    if local is None or restic is None:
        default_local, default_restic = endpoint.create_endpoints(config)
        local = local or default_local
        restic = restic or default_restic

    with process_lock(config.lock_file):
        logger.info(__util__.log_heading(f"Started at {time.ctime()}"))
        check_snapshot_dirs(local, config)
        restic.prepare()
        with workspace_mount(local, config.work_dir, config.logical_base):
            result = reconcile(local, restic, config)
        logger.info(__util__.log_heading(f"Finished at {time.ctime()}"))

    logger.info(
        "%d backup(s) made, %d subvolume(s) up to date",
        len(result.backed_up),
        len(result.skipped),
    )
    return result


def run_retention(config: RunConfig, restic=None) -> RetentionResult:
    """Apply only the retention policy, under the process lock."""
    if restic is None:
        _, restic = endpoint.create_endpoints(config)

    with process_lock(config.lock_file):
        restic.prepare()
        return enforce_retention(
            restic,
            config.retention,
            config.host,
            config.logical_base,
            config.directory_names(),
        )
