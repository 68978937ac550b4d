"""Status command: Show which subvolumes have snapshots awaiting backup."""

import argparse
import logging

from rich.console import Console
from rich.table import Table

from .. import __util__, endpoint
from ..__logger__ import create_logger
from ..core.operations import check_snapshot_dirs, plan_directory
from ..core.state import latest_backups
from .common import get_log_level, report_error, resolve_config

logger = logging.getLogger(__name__)


def execute_status(args: argparse.Namespace) -> int:
    """Execute the status command.

    Read-only: lists snapshots and restic backups, nothing is mounted,
    created or locked.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    log_level = get_log_level(args)
    create_logger(level=log_level)

    try:
        config = resolve_config(args)
        local, restic = endpoint.create_endpoints(config)
        check_snapshot_dirs(local, config)
        backups = latest_backups(restic, config.host)

        table = Table(title=f"btrfs-restic status ({config.host})")
        table.add_column("Path")
        table.add_column("Latest snapshot")
        table.add_column("Last backup")
        table.add_column("Backup due")

        pending = 0
        for directory in config.snapshot_dirs:
            for plan in plan_directory(local, directory, config.logical_base, backups):
                table.add_row(
                    plan.path,
                    plan.snapshot.timestamp_text,
                    plan.last_backup_text or "never",
                    "yes" if plan.needed else "no",
                )
                pending += plan.needed
    except __util__.AbortError as e:
        return report_error(e)

    Console().print(table)
    print(f"{pending} subvolume(s) awaiting backup, retention {config.retention}")
    return __util__.EXIT_OK
