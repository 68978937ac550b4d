"""TOML configuration loading and validation.

Handles config file discovery, parsing, and validation with helpful error messages.
"""

import re
import shlex
import tomllib
from pathlib import Path
from typing import Any, Optional

from ..__util__ import ConfigError
from .schema import (
    DEFAULT_BASE,
    DEFAULT_CACHE_DIR,
    DEFAULT_KEEP,
    DEFAULT_LOCK_FILE,
    DEFAULT_RESTIC_CMD,
    DEFAULT_WORK_DIR,
    RetentionPolicy,
    RunConfig,
)

# Config file search paths in priority order
CONFIG_PATHS = [
    Path.home() / ".config" / "btrfs-restic" / "config.toml",
    Path("/etc/btrfs-restic/config.toml"),
]

KNOWN_KEYS = frozenset(
    {
        "snapshot_dirs",
        "work_dir",
        "cache_dir",
        "base",
        "restic",
        "keep",
        "host",
        "lock_file",
        "verbose",
    }
)

RETENTION_RE = re.compile(r"^(\d+)-(\d+)$")
BASE_RE = re.compile(r"^[A-Za-z0-9._-]+$")


def find_config_file(explicit_path: str | None = None) -> Path | None:
    """Find configuration file.

    Args:
        explicit_path: Explicitly specified config path (highest priority)

    Returns:
        Path to config file, or None if not found
    """
    if explicit_path:
        path = Path(explicit_path)
        if path.exists():
            return path
        raise ConfigError(f"Config file not found: {explicit_path}")

    for path in CONFIG_PATHS:
        if path.exists():
            return path

    return None


def parse_retention(text: str) -> RetentionPolicy:
    """Parse ``keep-all`` or ``<min>-<max>`` into a RetentionPolicy."""
    if text == "keep-all":
        return RetentionPolicy()

    match = RETENTION_RE.match(text)
    if not match:
        raise ConfigError(
            f"Invalid retention policy {text!r}: expected 'keep-all' or '<min>-<max>'"
        )
    keep_min, keep_max = int(match.group(1)), int(match.group(2))
    if keep_min > keep_max:
        raise ConfigError(
            f"Invalid retention policy {text!r}: min must not exceed max"
        )
    return RetentionPolicy(keep_all=False, min=keep_min, max=keep_max)


def validate_base(base: str) -> str:
    """Check the logical base name is a single, plain path component."""
    if base in {"", ".", ".."} or not BASE_RE.match(base):
        raise ConfigError(
            f"Invalid base name {base!r}: use a single directory name "
            "made of letters, digits, '.', '_' or '-'"
        )
    return base


def load_config(path: Path | str) -> dict[str, Any]:
    """Load settings from the ``[global]`` table of a TOML file.

    Args:
        path: Path to configuration file

    Returns:
        Mapping of setting name to value

    Raises:
        ConfigError: If config is invalid or cannot be parsed
    """
    path = Path(path)

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML syntax: {e}")
    except OSError as e:
        raise ConfigError(f"Cannot read config file: {e}")

    settings = data.get("global", {})
    if not isinstance(settings, dict):
        raise ConfigError("'global' must be a table")

    unknown = sorted(set(settings) - KNOWN_KEYS)
    if unknown:
        raise ConfigError(f"Unknown setting(s) in {path}: {', '.join(unknown)}")

    dirs = settings.get("snapshot_dirs", [])
    if not isinstance(dirs, list) or not all(isinstance(d, str) for d in dirs):
        raise ConfigError("'snapshot_dirs' must be a list of paths")

    return settings


def build_config(
    settings: Optional[dict[str, Any]] = None, **overrides: Any
) -> RunConfig:
    """Merge file settings with command line overrides and validate the result.

    Overrides whose value is None are ignored, so unset command line options
    fall back to the file, then to the built-in defaults.
    """
    merged: dict[str, Any] = dict(settings or {})
    for key, value in overrides.items():
        if value is None:
            continue
        if key == "snapshot_dirs" and not value:
            continue
        merged[key] = value

    restic = merged.get("restic", DEFAULT_RESTIC_CMD)
    restic_cmd = tuple(shlex.split(restic) if isinstance(restic, str) else restic)
    if not restic_cmd:
        raise ConfigError("restic command must not be empty")

    snapshot_dirs = tuple(Path(d) for d in merged.get("snapshot_dirs", []))
    if not snapshot_dirs:
        raise ConfigError("No snapshot directories given")

    names = [d.name for d in snapshot_dirs]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ConfigError(
            f"Snapshot directories must have distinct names: {', '.join(duplicates)}"
        )

    kwargs: dict[str, Any] = {}
    if merged.get("host"):
        kwargs["host"] = merged["host"]

    return RunConfig(
        snapshot_dirs=snapshot_dirs,
        work_dir=Path(merged.get("work_dir", DEFAULT_WORK_DIR)),
        cache_dir=Path(merged.get("cache_dir", DEFAULT_CACHE_DIR)),
        base=validate_base(merged.get("base", DEFAULT_BASE)),
        restic_cmd=restic_cmd,
        retention=parse_retention(merged.get("keep", DEFAULT_KEEP)),
        lock_file=Path(merged.get("lock_file", DEFAULT_LOCK_FILE)),
        verbose=bool(merged.get("verbose", False)),
        dry_run=bool(merged.get("dry_run", False)),
        **kwargs,
    )


def generate_example_config() -> str:
    """Generate example configuration file content."""
    return """# btrfs-restic configuration

[global]
snapshot_dirs = ["/mnt/pool/.snapshots/photos", "/mnt/pool/.snapshots/home"]
work_dir = "/var/lib/btrfs-restic/work"
cache_dir = "/var/cache/btrfs-restic"
base = "btrfs-restic"       # work dir is bind-mounted at /btrfs-restic
restic = "restic -r /mnt/backup/restic"
keep = "3-5"                # prune to the last 3 once a directory has more than 5
# host = "myhost"
# lock_file = "/run/lock/btrfs-restic.lock"
"""
