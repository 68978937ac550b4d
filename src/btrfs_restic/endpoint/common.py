# pyright: standard

"""btrfs-restic: btrfs_restic/endpoint/common.py
Common functionality among endpoints.
"""

import shlex
from pathlib import Path

from btrfs_restic import __util__
from btrfs_restic.__logger__ import logger


class Endpoint:
    """Generic structure of a command endpoint."""

    def __init__(self, config=None, **kwargs) -> None:
        """
        Initialize the Endpoint with a configuration dictionary.

        Args:
            config (dict): Configuration dictionary containing endpoint settings.
            kwargs: Additional settings merged into the configuration.
        """
        config = config or {}
        self.config = {}
        self.config["dry_run"] = config.get("dry_run", False)

        for key, value in kwargs.items():
            self.config[key] = value

    @property
    def dry_run(self) -> bool:
        return bool(self.config["dry_run"])

    def prepare(self):
        """Public access to _prepare, which is called after creating an endpoint."""
        logger.debug("Preparing endpoint %r ...", self)
        return self._prepare()

    def makedirs(self, path) -> None:
        """Create ``path`` and its parents, printing instead when dry-running."""
        path = Path(path)
        if path.is_dir():
            return
        if self.dry_run:
            self._print_dry_run(["mkdir", "-p", str(path)])
            return
        logger.debug("Creating directory: %s", path)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise __util__.FileSystemError(["mkdir", "-p", str(path)], 1, str(e)) from e

    # The following methods may be implemented by endpoints unless the
    # default behaviour is wanted.

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

    def _prepare(self) -> None:
        """Called after endpoint creation for additional checks."""
        pass

    def _exec_command(self, command, capture=False, read_only=False, **kwargs):
        """Run ``command``; side-effecting commands are only printed in dry-run."""
        if not command:
            raise ValueError("No command specified for _exec_command")
        if self.dry_run and not read_only:
            self._print_dry_run(command)
            return "" if capture else None
        return __util__.exec_subprocess(command, capture=capture, **kwargs)

    @staticmethod
    def _print_dry_run(command) -> None:
        print(f"[dry-run] {shlex.join(command)}")
