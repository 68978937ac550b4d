"""Retention: prune the repository once a snapshot directory has too many backups."""

import logging
from dataclasses import dataclass, field

from ..config import RetentionPolicy
from .state import count_backups

logger = logging.getLogger(__name__)


@dataclass
class RetentionResult:
    """Outcome of a retention pass."""

    counts: dict[str, int] = field(default_factory=dict)
    pruned: bool = False

    @property
    def max_count(self) -> int:
        return max(self.counts.values(), default=0)


def enforce_retention(
    restic, policy: RetentionPolicy, host, logical_base, directories
) -> RetentionResult:
    """Prune with ``forget --keep-last <min>`` if any directory exceeds ``max``.

    Args:
        restic: Restic endpoint
        policy: Retention policy; keep-all never prunes
        host: Host whose backups are counted
        logical_base: Mount point all backed up paths live under
        directories: Names of the processed snapshot directories

    Returns:
        RetentionResult with the per directory counts
    """
    if policy.keep_all:
        logger.debug("Retention policy is keep-all, nothing to prune")
        return RetentionResult()

    counts = dict(count_backups(restic, host, logical_base, directories))
    result = RetentionResult(counts=counts)
    for name, count in counts.items():
        logger.debug("%s: %d backup(s)", name, count)

    if not policy.exceeded_by(result.max_count):
        logger.info(
            "Retention: at most %d backup(s) per directory, limit %d",
            result.max_count,
            policy.max,
        )
        return result

    logger.info(
        "Retention: %d backup(s) exceed limit %d, keeping last %d",
        result.max_count,
        policy.max,
        policy.min,
    )
    restic.forget(policy.min)
    result.pruned = True
    return result
