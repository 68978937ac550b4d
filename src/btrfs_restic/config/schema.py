"""Configuration schema definitions using dataclasses.

Defines the immutable run configuration handed to the reconciliation engine.
"""

import socket
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

DEFAULT_WORK_DIR = "/var/lib/btrfs-restic/work"
DEFAULT_CACHE_DIR = "/var/cache/btrfs-restic"
DEFAULT_BASE = "btrfs-restic"
DEFAULT_RESTIC_CMD = "restic"
DEFAULT_KEEP = "keep-all"
DEFAULT_LOCK_FILE = "/run/lock/btrfs-restic.lock"


@dataclass(frozen=True)
class RetentionPolicy:
    """Retention policy.

    Attributes:
        keep_all: Never prune when set
        min: Number of most recent backups to retain per path when pruning
        max: Backup count per snapshot directory above which pruning starts
    """

    keep_all: bool = True
    min: Optional[int] = None
    max: Optional[int] = None

    def exceeded_by(self, count: int) -> bool:
        """Whether ``count`` backups call for a prune."""
        if self.keep_all or self.max is None:
            return False
        return count > self.max

    def __str__(self) -> str:
        return "keep-all" if self.keep_all else f"{self.min}-{self.max}"


@dataclass(frozen=True)
class RunConfig:
    """Resolved configuration of one invocation.

    Attributes:
        snapshot_dirs: Directories holding timestamped btrfs snapshots
        work_dir: Working area bind-mounted at the logical base
        cache_dir: restic cache directory
        base: Logical base name, mounted at ``/<base>``
        restic_cmd: restic command line prefix (may carry ``-r REPO`` etc.)
        retention: Retention policy applied after all backups
        host: Host name recorded in and used to filter restic snapshots
        lock_file: Path of the single-instance lock file
        verbose: Pass ``--verbose`` to restic backup
        dry_run: Print side-effecting commands instead of running them
    """

    snapshot_dirs: tuple[Path, ...] = ()
    work_dir: Path = Path(DEFAULT_WORK_DIR)
    cache_dir: Path = Path(DEFAULT_CACHE_DIR)
    base: str = DEFAULT_BASE
    restic_cmd: tuple[str, ...] = (DEFAULT_RESTIC_CMD,)
    retention: RetentionPolicy = field(default_factory=RetentionPolicy)
    host: str = field(default_factory=socket.gethostname)
    lock_file: Path = Path(DEFAULT_LOCK_FILE)
    verbose: bool = False
    dry_run: bool = False

    @property
    def logical_base(self) -> Path:
        """Mount point of the work dir; every backed up path lives below it."""
        return Path("/") / self.base

    def directory_names(self) -> list[str]:
        """Names of the snapshot directories, used as logical path segments."""
        return [d.name for d in self.snapshot_dirs]
