"""Config command: Configuration management."""

import argparse
import logging

from .. import __util__
from ..__logger__ import create_logger
from ..config import find_config_file, generate_example_config
from .common import get_log_level, resolve_config

logger = logging.getLogger(__name__)


def execute_config(args: argparse.Namespace) -> int:
    """Execute the config command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    log_level = get_log_level(args)
    create_logger(level=log_level)

    action = getattr(args, "config_action", None)

    if action == "validate":
        return _validate_config(args)
    elif action == "init":
        return _init_config(args)
    else:
        print("Usage: btrfs-restic config <validate|init>")
        return __util__.EXIT_CONFIG


def _validate_config(args: argparse.Namespace) -> int:
    """Validate configuration file merged with the command line."""
    try:
        config_path = find_config_file(getattr(args, "config", None))
        if config_path is None:
            print("No configuration file found, checking command line only.")
            print("Searched locations:")
            print("  ~/.config/btrfs-restic/config.toml")
            print("  /etc/btrfs-restic/config.toml")
        else:
            print(f"Validating: {config_path}")

        config = resolve_config(args)
    except __util__.ConfigError as e:
        print(f"Configuration error: {e}")
        return __util__.EXIT_CONFIG

    print("")
    print("Configuration is valid.")
    print(f"  Snapshot directories: {len(config.snapshot_dirs)}")
    for directory in config.snapshot_dirs:
        print(f"    {directory} -> {config.logical_base / directory.name}")
    print(f"  Work dir: {config.work_dir} (mounted at {config.logical_base})")
    print(f"  Cache dir: {config.cache_dir}")
    print(f"  restic: {' '.join(config.restic_cmd)}")
    print(f"  Retention: {config.retention}")
    print(f"  Host: {config.host}")

    return __util__.EXIT_OK


def _init_config(args: argparse.Namespace) -> int:
    """Generate example configuration."""
    content = generate_example_config()

    output = getattr(args, "output", None)
    if output:
        try:
            with open(output, "w") as f:
                f.write(content)
            print(f"Example configuration written to: {output}")
        except OSError as e:
            print(f"Error writing file: {e}")
            return __util__.EXIT_FAILURE
    else:
        print(content)

    return __util__.EXIT_OK
