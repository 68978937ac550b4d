"""Tests for config command functionality."""

import argparse

from btrfs_restic.cli.config_cmd import _init_config, execute_config
from btrfs_restic.config.loader import load_config


class TestInitConfig:
    """Tests for config init."""

    def test_prints_example(self, capsys):
        args = argparse.Namespace(output=None)
        assert _init_config(args) == 0
        out = capsys.readouterr().out
        assert "[global]" in out
        assert 'keep = "3-5"' in out

    def test_writes_loadable_file(self, tmp_path):
        output = tmp_path / "config.toml"
        args = argparse.Namespace(output=str(output))
        assert _init_config(args) == 0

        settings = load_config(output)
        assert settings["base"] == "btrfs-restic"
        assert len(settings["snapshot_dirs"]) == 2

    def test_unwritable_output(self, tmp_path):
        args = argparse.Namespace(output=str(tmp_path / "missing" / "config.toml"))
        assert _init_config(args) == 1


class TestValidateConfig:
    """Tests for config validate."""

    def test_valid(self, config_file, capsys):
        args = argparse.Namespace(config_action="validate", config=str(config_file))
        assert execute_config(args) == 0
        out = capsys.readouterr().out
        assert "Configuration is valid." in out
        assert "/mnt/pool/.snapshots/photos -> /backup/photos" in out
        assert "Retention: 3-5" in out

    def test_invalid(self, tmp_config_dir, capsys):
        path = tmp_config_dir / "bad.toml"
        path.write_text('[global]\nsnapshot_dirs = ["/s/photos"]\nkeep = "many"\n')
        args = argparse.Namespace(config_action="validate", config=str(path))
        assert execute_config(args) == 2
        assert "Invalid retention policy" in capsys.readouterr().out

    def test_missing_action(self, capsys):
        assert execute_config(argparse.Namespace(config_action=None)) == 2
        assert "Usage" in capsys.readouterr().out
