# pyright: standard

"""btrfs-restic: btrfs_restic/__util__.py
Common errors, subprocess execution and timestamp helpers.
"""

import re
import shlex
import subprocess
from datetime import datetime

from btrfs_restic.__logger__ import logger

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2
EXIT_LOCK_HELD = 3
EXIT_LOCK_FAILED = 4

# a failing tool may not report its status as one of these
RESERVED_EXIT_CODES = (EXIT_CONFIG, EXIT_LOCK_HELD, EXIT_LOCK_FAILED)

# restic renders times in this fixed-width, zero-padded form, so string order
# and chronological order agree.
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
TIMESTAMP_RE = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}$")


class AbortError(Exception):
    """Fatal error that ends the current run."""

    exit_code = EXIT_FAILURE


class ConfigError(AbortError):
    """Invalid configuration or command line input."""

    exit_code = EXIT_CONFIG


class LockError(AbortError):
    """The single-instance lock could not be obtained."""

    exit_code = EXIT_LOCK_FAILED


class LockAlreadyHeld(LockError):
    """Another run currently holds the lock."""

    exit_code = EXIT_LOCK_HELD


class ParseError(AbortError):
    """Snapshot name or restic output does not have the required shape."""


class ToolError(AbortError):
    """An external command returned non-zero or could not be started."""

    def __init__(self, command, returncode=EXIT_FAILURE, stderr=None) -> None:
        self.command = list(command)
        self.returncode = returncode
        self.stderr = (stderr or "").strip()
        message = f"Command failed ({returncode}): {shlex.join(self.command)}"
        if self.stderr:
            message += f": {self.stderr}"
        super().__init__(message)

    @property
    def exit_code(self) -> int:  # type: ignore[override]
        if self.returncode <= 0 or self.returncode in RESERVED_EXIT_CODES:
            return EXIT_FAILURE
        return self.returncode


class FileSystemError(ToolError):
    """Mount, unmount or btrfs subvolume operation failed."""


def exec_subprocess(command, capture=False, **kwargs):
    """Run ``command`` to completion and return its stdout when captured.

    Raises:
        ToolError: If the command cannot be started or exits non-zero.
    """
    logger.debug("Executing: %s", shlex.join(command))
    try:
        result = subprocess.run(
            command,
            check=True,
            text=True,
            stdout=subprocess.PIPE if capture else None,
            stderr=subprocess.PIPE if capture else None,
            **kwargs,
        )
    except FileNotFoundError as e:
        raise ToolError(command, 127, str(e)) from e
    except subprocess.CalledProcessError as e:
        raise ToolError(command, e.returncode, e.stderr) from e
    return result.stdout if capture else None


def format_timestamp(value: datetime) -> str:
    """Render a timestamp the way restic lists and accepts it."""
    return value.strftime(TIMESTAMP_FORMAT)


def parse_timestamp(text: str) -> datetime:
    """Parse a ``YYYY-MM-DD HH:MM:SS`` timestamp, raising ParseError otherwise."""
    if not TIMESTAMP_RE.match(text):
        raise ParseError(f"Malformed timestamp: {text!r}")
    try:
        return datetime.strptime(text, TIMESTAMP_FORMAT)
    except ValueError as e:
        raise ParseError(f"Invalid timestamp {text!r}: {e}") from e


def log_heading(caption: str) -> str:
    """Formatted heading for logging output sections."""
    return f"{'-' * 10} {caption} {'-' * 10}"
