"""Run command: Back up new snapshots and apply retention."""

import argparse
import logging

from .. import __util__
from ..__logger__ import create_logger
from ..core.operations import run_reconciliation
from .common import get_log_level, report_error, resolve_config

logger = logging.getLogger(__name__)


def execute_run(args: argparse.Namespace) -> int:
    """Execute the run command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    log_level = get_log_level(args)
    create_logger(level=log_level)

    try:
        config = resolve_config(args)
        if config.dry_run:
            logger.info("Dry run mode - commands that change anything are printed only")
        logger.info(
            "Processing %d snapshot directory(ies), retention %s",
            len(config.snapshot_dirs),
            config.retention,
        )
        result = run_reconciliation(config)
    except __util__.AbortError as e:
        return report_error(e)

    if result.retention is not None and result.retention.pruned:
        logger.info("Repository pruned")
    return __util__.EXIT_OK
