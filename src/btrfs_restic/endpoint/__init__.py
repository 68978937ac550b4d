# pyright: standard

"""btrfs-restic: btrfs_restic/endpoint/__init__.py."""

from .common import Endpoint
from .local import LocalEndpoint
from .restic import BackupRecord, ResticEndpoint, parse_snapshot_listing


def create_endpoints(config):
    """
    Build the local and restic endpoints for a run configuration.

    Args:
        config (RunConfig): The resolved run configuration.

    Returns:
        tuple: ``(LocalEndpoint, ResticEndpoint)``, not yet prepared.
    """
    local = LocalEndpoint({"dry_run": config.dry_run})
    restic = ResticEndpoint(
        {
            "restic_cmd": config.restic_cmd,
            "cache_dir": config.cache_dir,
            "verbose": config.verbose,
            "dry_run": config.dry_run,
        }
    )
    return local, restic


__all__ = [
    "BackupRecord",
    "Endpoint",
    "LocalEndpoint",
    "ResticEndpoint",
    "create_endpoints",
    "parse_snapshot_listing",
]
