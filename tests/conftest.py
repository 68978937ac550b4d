"""Pytest configuration and shared fixtures."""

from datetime import datetime
from pathlib import Path

import pytest

from btrfs_restic.config import RetentionPolicy, RunConfig
from btrfs_restic.endpoint import BackupRecord, LocalEndpoint


class FakeLocal(LocalEndpoint):
    """LocalEndpoint that lists real directories but only records commands."""

    def __init__(self, fail_on=None):
        super().__init__({"dry_run": False})
        self.commands = []
        self.fail_on = fail_on

    def makedirs(self, path):
        self.commands.append(["mkdir", "-p", str(path)])

    def _exec_command(self, command, capture=False, read_only=False, **kwargs):
        self.commands.append(list(command))
        if self.fail_on and self.fail_on in command:
            from btrfs_restic.__util__ import ToolError

            raise ToolError(command, 1, "simulated failure")
        return "" if capture else None

    def commands_named(self, *prefix):
        return [c for c in self.commands if c[: len(prefix)] == list(prefix)]


class FakeRestic:
    """In-memory stand-in for ResticEndpoint."""

    def __init__(self, records=None, fail_backup=False):
        self.records = list(records or [])
        self.backups = []
        self.forgets = []
        self.list_calls = []
        self.fail_backup = fail_backup
        self.prepared = False

    def prepare(self):
        self.prepared = True

    def list_snapshots(self, host, latest=False):
        self.list_calls.append((host, latest))
        records = [r for r in self.records if r.host == host]
        if not latest:
            return records
        newest = {}
        for record in records:
            key = record.paths
            if key not in newest or record.time > newest[key].time:
                newest[key] = record
        return list(newest.values())

    def backup(self, path, time_obj, host):
        if self.fail_backup:
            from btrfs_restic.__util__ import ToolError

            raise ToolError(["restic", "backup", str(path)], 5, "repository locked")
        self.backups.append((str(path), time_obj, host))
        self.records.append(
            BackupRecord(f"{len(self.records):08x}", time_obj, host, (str(path),))
        )

    def forget(self, keep_last):
        self.forgets.append(keep_last)


def make_record(path, stamp, host="testhost", snapshot_id=None):
    """Build a BackupRecord from a ``YYYY-MM-DD HH:MM:SS`` string."""
    return BackupRecord(
        snapshot_id or "0123abcd",
        datetime.strptime(stamp, "%Y-%m-%d %H:%M:%S"),
        host,
        (path,),
    )


def make_snapshot_dir(root: Path, name: str, entries) -> Path:
    """Create ``root/name`` holding one sub directory per entry name."""
    directory = root / name
    directory.mkdir(parents=True)
    for entry in entries:
        (directory / entry).mkdir()
    return directory


@pytest.fixture
def fake_local():
    return FakeLocal()


@pytest.fixture
def photos_dir(tmp_path):
    """A snapshot directory with a single snapshot of subvolume 'vol'."""
    return make_snapshot_dir(tmp_path / "snapshots", "photos", ["vol.20240101T0900"])


@pytest.fixture
def make_config(tmp_path):
    """Factory for a RunConfig with test defaults."""

    def _make(*snapshot_dirs, retention=None, **kwargs):
        kwargs.setdefault("lock_file", tmp_path / "lock" / "btrfs-restic.lock")
        kwargs.setdefault("work_dir", tmp_path / "work")
        kwargs.setdefault("cache_dir", tmp_path / "cache")
        kwargs.setdefault("host", "testhost")
        return RunConfig(
            snapshot_dirs=tuple(snapshot_dirs),
            retention=retention or RetentionPolicy(),
            **kwargs,
        )

    return _make


@pytest.fixture
def sample_config_toml():
    """Return a sample valid TOML configuration string."""
    return """
[global]
snapshot_dirs = ["/mnt/pool/.snapshots/photos", "/mnt/pool/.snapshots/home"]
work_dir = "/var/lib/btrfs-restic/work"
cache_dir = "/var/cache/btrfs-restic"
base = "backup"
restic = "restic -r /mnt/backup/repo"
keep = "3-5"
host = "nas"
lock_file = "/run/lock/test.lock"
"""


@pytest.fixture
def tmp_config_dir(tmp_path):
    """Create a temporary config directory."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def config_file(tmp_config_dir, sample_config_toml):
    """Create a temporary config file with sample content."""
    config_path = tmp_config_dir / "config.toml"
    config_path.write_text(sample_config_toml)
    return config_path


@pytest.fixture
def empty_config_file(tmp_config_dir):
    """Create a config file without settings."""
    config_path = tmp_config_dir / "empty.toml"
    config_path.write_text("[global]\n")
    return config_path
