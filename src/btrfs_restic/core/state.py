"""Backup state as recorded in the restic repository."""

import logging
from collections import Counter
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)


def latest_backups(restic, host: str) -> dict[str, datetime]:
    """Map each backed up path of ``host`` to the time of its newest backup.

    A path missing from the result has never been backed up.
    """
    latest: dict[str, datetime] = {}
    for record in restic.list_snapshots(host, latest=True):
        for path in record.paths:
            if path not in latest or record.time > latest[path]:
                latest[path] = record.time
    logger.debug("Found backups for %d path(s)", len(latest))
    return latest


def count_backups(restic, host: str, logical_base, directories) -> Counter:
    """Count recorded backups below ``<logical_base>/<directory>/`` per directory.

    Backups of every subvolume of a directory add to that directory's count.
    """
    prefixes = {name: f"{Path(logical_base) / name}/" for name in directories}
    counts: Counter = Counter({name: 0 for name in directories})
    for record in restic.list_snapshots(host):
        for name, prefix in prefixes.items():
            if any(path.startswith(prefix) for path in record.paths):
                counts[name] += 1
    return counts
