"""Core reconciliation operations for btrfs-restic.

Snapshot discovery, backup state, planning/execution and retention,
organized into focused modules.
"""

from .catalog import SnapshotInstance, latest_per_subvolume, scan_snapshots
from .operations import (
    BackupPlan,
    RunResult,
    plan_directory,
    reconcile,
    run_reconciliation,
    run_retention,
)
from .retention import RetentionResult, enforce_retention
from .state import count_backups, latest_backups

__all__ = [
    "SnapshotInstance",
    "latest_per_subvolume",
    "scan_snapshots",
    "BackupPlan",
    "RunResult",
    "plan_directory",
    "reconcile",
    "run_reconciliation",
    "run_retention",
    "RetentionResult",
    "enforce_retention",
    "count_backups",
    "latest_backups",
]
