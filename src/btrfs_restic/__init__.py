"""btrfs-restic: btrfs_restic/__init__.py."""

from pathlib import Path


__version__ = "0.3.0"


def logical_path(base: Path, directory: str, subvolume: str) -> str:
    """Return the path restic records for a subvolume of a snapshot directory."""
    return str(Path(base) / directory / subvolume)
