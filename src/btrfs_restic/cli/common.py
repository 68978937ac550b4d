"""Shared CLI utilities and argument parsers."""

import argparse
import logging

from .. import __util__
from ..config import RunConfig, build_config, find_config_file, load_config

logger = logging.getLogger(__name__)

USAGE_HINT = "See 'btrfs-restic --help' or 'btrfs-restic config init' for usage."


def add_verbosity_args(parser: argparse.ArgumentParser) -> None:
    """Add verbosity-related arguments to a parser."""
    group = parser.add_argument_group("Output options")
    group.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output (also passed on to restic backup)",
    )
    group.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress non-essential output",
    )
    group.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output",
    )


def add_repository_args(parser: argparse.ArgumentParser) -> None:
    """Add the options shared by all commands talking to the repository."""
    group = parser.add_argument_group("Repository options")
    group.add_argument(
        "-w",
        "--work-dir",
        metavar="DIR",
        help="Working directory bind-mounted at /BASE",
    )
    group.add_argument(
        "--cache-dir",
        metavar="DIR",
        help="restic cache directory",
    )
    group.add_argument(
        "-b",
        "--base",
        metavar="NAME",
        help="Logical base name; backups are recorded below /NAME",
    )
    group.add_argument(
        "-r",
        "--restic",
        metavar="CMD",
        help="restic command, e.g. 'restic -r /mnt/backup/repo'",
    )
    group.add_argument(
        "-k",
        "--keep",
        metavar="MIN-MAX",
        help="Retention: 'keep-all' or MIN-MAX to keep the last MIN backups "
        "once a directory has more than MAX",
    )
    group.add_argument(
        "--host",
        metavar="NAME",
        help="Host name to record and filter backups by (default: hostname)",
    )
    group.add_argument(
        "--lock-file",
        metavar="FILE",
        help="Single-instance lock file",
    )
    group.add_argument(
        "-n",
        "--dry-run",
        action="store_true",
        help="Print commands that would change anything instead of running them",
    )


def get_log_level(args: argparse.Namespace) -> str:
    """Determine log level from parsed arguments.

    Args:
        args: Parsed command line arguments

    Returns:
        Log level string (DEBUG, INFO, WARNING, ERROR)
    """
    if getattr(args, "debug", False):
        return "DEBUG"
    elif getattr(args, "quiet", False):
        return "WARNING"
    elif getattr(args, "verbose", False):
        return "DEBUG"
    else:
        return "INFO"


def resolve_config(args: argparse.Namespace) -> RunConfig:
    """Build the run configuration from the config file and the command line.

    Raises:
        ConfigError: If the configuration is incomplete or invalid
    """
    settings = {}
    config_path = find_config_file(getattr(args, "config", None))
    if config_path is not None:
        logger.debug("Loading configuration from: %s", config_path)
        settings = load_config(config_path)

    return build_config(
        settings,
        snapshot_dirs=getattr(args, "snapshot_dirs", None),
        work_dir=getattr(args, "work_dir", None),
        cache_dir=getattr(args, "cache_dir", None),
        base=getattr(args, "base", None),
        restic=getattr(args, "restic", None),
        keep=getattr(args, "keep", None),
        host=getattr(args, "host", None),
        lock_file=getattr(args, "lock_file", None),
        verbose=getattr(args, "verbose", False) or None,
        dry_run=getattr(args, "dry_run", False),
    )


def report_error(error: __util__.AbortError) -> int:
    """Log a fatal error and return the exit code for it."""
    if isinstance(error, __util__.ConfigError):
        logger.error("Configuration error: %s", error)
        logger.error(USAGE_HINT)
    elif isinstance(error, __util__.LockError):
        logger.error("%s", error)
    else:
        logger.error("Aborted: %s", error)
    return error.exit_code
