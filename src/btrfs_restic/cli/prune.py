"""Prune command: Apply the retention policy without backing anything up."""

import argparse
import logging

from .. import __util__
from ..__logger__ import create_logger
from ..core.operations import run_retention
from .common import get_log_level, report_error, resolve_config

logger = logging.getLogger(__name__)


def execute_prune(args: argparse.Namespace) -> int:
    """Execute the prune command.

    Counts the backups of each snapshot directory and prunes the repository
    when one of them exceeds the configured maximum.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    log_level = get_log_level(args)
    create_logger(level=log_level)

    try:
        config = resolve_config(args)
        if config.retention.keep_all:
            logger.info("Retention policy is keep-all, nothing to prune")
            return __util__.EXIT_OK

        result = run_retention(config)
    except __util__.AbortError as e:
        return report_error(e)

    for name, count in result.counts.items():
        logger.info("  %s: %d backup(s)", name, count)

    if result.pruned:
        logger.info("Pruned repository to the last %d backup(s)", config.retention.min)
    else:
        logger.info("No directory exceeds %d backup(s)", config.retention.max)

    return __util__.EXIT_OK
