"""Snapshot discovery: parse timestamped snapshot names and pick the latest.

Snapshot entries are named ``<subvolume>.<YYYYMMDD>T<HHMM>[_<index>]``.
Entries that do not follow the pattern are ignored.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from .. import __util__

logger = logging.getLogger(__name__)

SNAPSHOT_NAME_RE = re.compile(r"^(.+)\.(\d{4})(\d{2})(\d{2})T(\d{2})(\d{2})(_\d+)?$")


@dataclass(frozen=True)
class SnapshotInstance:
    """A snapshot parsed from its directory entry name."""

    subvolume: str
    timestamp: datetime
    index: Optional[int]
    path: Path

    @property
    def sort_key(self) -> tuple:
        # an entry without index was taken before any "_N" entry of that minute
        return (self.timestamp, -1 if self.index is None else self.index)

    @property
    def timestamp_text(self) -> str:
        """Capture time as ``YYYY-MM-DD HH:MM:00``."""
        return __util__.format_timestamp(self.timestamp)

    @property
    def name(self) -> str:
        return self.path.name


def parse_snapshot_name(name: str, directory: Path) -> Optional[SnapshotInstance]:
    """Parse a directory entry name; returns None when it is no snapshot name.

    Raises:
        ParseError: If the name matches the pattern but is no valid date.
    """
    match = SNAPSHOT_NAME_RE.match(name)
    if not match:
        return None

    subvolume, year, month, day, hour, minute, index = match.groups()
    try:
        timestamp = datetime(
            int(year), int(month), int(day), int(hour), int(minute)
        )
    except ValueError as e:
        raise __util__.ParseError(f"Invalid timestamp in snapshot {name!r}: {e}") from e

    return SnapshotInstance(
        subvolume=subvolume,
        timestamp=timestamp,
        index=int(index[1:]) if index else None,
        path=Path(directory) / name,
    )


def scan_snapshots(local, directory) -> list[SnapshotInstance]:
    """Return all snapshots found in ``directory``, oldest first.

    Raises:
        ConfigError: If ``directory`` does not exist.
    """
    directory = Path(directory)
    try:
        names = local.listdir(directory)
    except FileNotFoundError as e:
        raise __util__.ConfigError(
            f"Snapshot directory does not exist: {directory}"
        ) from e

    snapshots = []
    for name in names:
        snapshot = parse_snapshot_name(name, directory)
        if snapshot is None:
            logger.debug("Ignoring non-snapshot entry: %s", name)
            continue
        snapshots.append(snapshot)

    snapshots.sort(key=lambda s: s.sort_key)
    return snapshots


def latest_per_subvolume(local, directory) -> dict[str, SnapshotInstance]:
    """Map every subvolume found in ``directory`` to its newest snapshot."""
    latest: dict[str, SnapshotInstance] = {}
    for snapshot in scan_snapshots(local, directory):
        latest[snapshot.subvolume] = snapshot

    if not latest:
        logger.info("No snapshots found in %s", directory)

    return {name: latest[name] for name in sorted(latest)}
