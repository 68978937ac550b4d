"""CLI dispatcher.

Builds the subcommand parser and routes parsed arguments to the
command handlers.
"""

import argparse
import sys
from typing import Callable

from .common import add_repository_args, add_verbosity_args


def create_subcommand_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="btrfs-restic",
        description="Back up btrfs snapshots to a restic repository",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    add_verbosity_args(parser)

    parser.add_argument(
        "-V",
        "--version",
        action="store_true",
        help="Show version and exit",
    )

    parser.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        help="Path to configuration file",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        description="Available commands (use 'command --help' for details)",
    )

    # run command
    run_parser = subparsers.add_parser(
        "run",
        help="Back up new snapshots and apply retention",
        description="Back up the newest snapshot of every subvolume that is "
        "newer than its last backup, then prune if needed",
    )
    add_repository_args(run_parser)
    run_parser.add_argument(
        "snapshot_dirs",
        metavar="SNAPSHOT_DIR",
        nargs="*",
        help="Directory containing <subvolume>.<YYYYMMDD>T<HHMM> snapshots",
    )

    # status command
    status_parser = subparsers.add_parser(
        "status",
        help="Show which subvolumes await backup",
        description="Compare snapshots with restic backups without changing anything",
    )
    add_repository_args(status_parser)
    status_parser.add_argument(
        "snapshot_dirs",
        metavar="SNAPSHOT_DIR",
        nargs="*",
        help="Directory containing snapshots",
    )

    # prune command
    prune_parser = subparsers.add_parser(
        "prune",
        help="Apply the retention policy",
        description="Prune the repository if a snapshot directory has more "
        "backups than the retention maximum",
    )
    add_repository_args(prune_parser)
    prune_parser.add_argument(
        "snapshot_dirs",
        metavar="SNAPSHOT_DIR",
        nargs="*",
        help="Directory whose backups are counted",
    )

    # config command with subcommands
    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
        description="Validate or initialize configuration",
    )
    config_subs = config_parser.add_subparsers(dest="config_action")

    validate_parser = config_subs.add_parser(
        "validate",
        help="Validate configuration file",
    )
    add_repository_args(validate_parser)
    validate_parser.add_argument(
        "snapshot_dirs",
        metavar="SNAPSHOT_DIR",
        nargs="*",
        help="Directory containing snapshots",
    )

    init_parser = config_subs.add_parser(
        "init",
        help="Generate example configuration",
    )
    init_parser.add_argument(
        "-o",
        "--output",
        metavar="FILE",
        help="Output file (default: stdout)",
    )

    return parser


def run_subcommand(args: argparse.Namespace) -> int:
    """Run the specified subcommand.

    Args:
        args: Parsed arguments

    Returns:
        Exit code
    """
    from .. import __util__, __version__

    if args.version:
        print(f"btrfs-restic {__version__}")
        return __util__.EXIT_OK

    if not args.command:
        print("No command specified. Use --help for usage information.")
        return __util__.EXIT_CONFIG

    # Route to appropriate command handler
    handlers: dict[str, Callable] = {
        "run": cmd_run,
        "status": cmd_status,
        "prune": cmd_prune,
        "config": cmd_config,
    }

    handler = handlers.get(args.command)
    if handler:
        return handler(args)
    else:
        print(f"Unknown command: {args.command}")
        return __util__.EXIT_CONFIG


def cmd_run(args: argparse.Namespace) -> int:
    """Execute run command."""
    from .run import execute_run

    return execute_run(args)


def cmd_status(args: argparse.Namespace) -> int:
    """Execute status command."""
    from .status import execute_status

    return execute_status(args)


def cmd_prune(args: argparse.Namespace) -> int:
    """Execute prune command."""
    from .prune import execute_prune

    return execute_prune(args)


def cmd_config(args: argparse.Namespace) -> int:
    """Execute config command."""
    from .config_cmd import execute_config

    return execute_config(args)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for btrfs-restic CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = create_subcommand_parser()
    args = parser.parse_args(argv)

    return run_subcommand(args)
