"""Configuration system for btrfs-restic.

This module provides TOML-based configuration loading, validation,
and the immutable run configuration passed to the engine.
"""

from ..__util__ import ConfigError
from .loader import (
    build_config,
    find_config_file,
    generate_example_config,
    load_config,
    parse_retention,
    validate_base,
)
from .schema import RetentionPolicy, RunConfig

__all__ = [
    "RetentionPolicy",
    "RunConfig",
    "build_config",
    "load_config",
    "find_config_file",
    "generate_example_config",
    "parse_retention",
    "validate_base",
    "ConfigError",
]
