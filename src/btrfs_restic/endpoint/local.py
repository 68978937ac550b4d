# pyright: standard

"""btrfs-restic: btrfs_restic/endpoint/local.py
Filesystem and btrfs commands on the local machine.
"""

from pathlib import Path

from btrfs_restic import __util__
from btrfs_restic.__logger__ import logger

from .common import Endpoint


class LocalEndpoint(Endpoint):
    """Run mount and btrfs subvolume commands locally."""

    def listdir(self, location) -> list[str]:
        """Return the sorted entry names of ``location``.

        Raises:
            FileNotFoundError: If ``location`` is not a directory.
        """
        location = Path(location)
        if not location.is_dir():
            raise FileNotFoundError(location)
        return sorted(item.name for item in location.iterdir())

    def exists(self, path) -> bool:
        return Path(path).exists()

    def bind_mount(self, source, target) -> None:
        """Bind ``source`` at ``target``."""
        logger.debug("Binding %s at %s", source, target)
        self._exec_fs_command(["mount", "--bind", str(source), str(target)])

    def unmount(self, target) -> None:
        logger.debug("Unmounting %s", target)
        self._exec_fs_command(["umount", str(target)])

    def create_snapshot(self, source, destination) -> None:
        """Create a writable btrfs snapshot of ``source`` at ``destination``."""
        self._exec_fs_command(
            ["btrfs", "subvolume", "snapshot", str(source), str(destination)]
        )

    def delete_subvolume(self, path) -> None:
        self._exec_fs_command(["btrfs", "subvolume", "delete", str(path)])

    def _exec_fs_command(self, command) -> None:
        try:
            self._exec_command(command, capture=True)
        except __util__.FileSystemError:
            raise
        except __util__.ToolError as e:
            raise __util__.FileSystemError(e.command, e.returncode, e.stderr) from e
