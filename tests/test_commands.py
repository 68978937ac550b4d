"""Tests for the run, prune and status commands and their exit codes."""

from unittest import mock

import pytest

from btrfs_restic import __version__
from btrfs_restic.__util__ import (
    EXIT_CONFIG,
    EXIT_LOCK_FAILED,
    EXIT_LOCK_HELD,
    LockAlreadyHeld,
    LockError,
    ParseError,
    ToolError,
)
from btrfs_restic.cli.dispatcher import create_subcommand_parser, main
from btrfs_restic.core.operations import RunResult
from btrfs_restic.core.retention import RetentionResult

from conftest import FakeRestic, make_record


@pytest.fixture
def run_args(empty_config_file, photos_dir, tmp_path):
    """Command line options shared by the command tests."""
    return [
        "-c",
        str(empty_config_file),
        "--lock-file",
        str(tmp_path / "lock" / "test.lock"),
        "--host",
        "testhost",
        "--cache-dir",
        str(tmp_path / "cache"),
    ]


class TestParser:
    """Tests for the subcommand parser."""

    def test_run_arguments(self):
        args = create_subcommand_parser().parse_args(
            ["-v", "run", "-k", "3-5", "-n", "/snaps/photos", "/snaps/home"]
        )
        assert args.command == "run"
        assert args.verbose is True
        assert args.keep == "3-5"
        assert args.dry_run is True
        assert args.snapshot_dirs == ["/snaps/photos", "/snaps/home"]

    def test_version(self, capsys):
        assert main(["--version"]) == 0
        assert __version__ in capsys.readouterr().out

    def test_no_command(self):
        assert main([]) == EXIT_CONFIG


class TestRunCommand:
    """Tests for the run command."""

    def test_success(self, run_args, photos_dir):
        with mock.patch(
            "btrfs_restic.cli.run.run_reconciliation", return_value=RunResult()
        ) as run:
            assert main(["run", *run_args, str(photos_dir)]) == 0

        config = run.call_args.args[0]
        assert config.snapshot_dirs == (photos_dir,)
        assert config.host == "testhost"

    def test_invalid_policy_before_any_work(self, run_args, photos_dir):
        with mock.patch("btrfs_restic.cli.run.run_reconciliation") as run:
            code = main(["run", *run_args, "-k", "3_5", str(photos_dir)])
        assert code == EXIT_CONFIG
        run.assert_not_called()

    def test_invalid_base(self, run_args, photos_dir):
        with mock.patch("btrfs_restic.cli.run.run_reconciliation") as run:
            code = main(["run", *run_args, "-b", "a/b", str(photos_dir)])
        assert code == EXIT_CONFIG
        run.assert_not_called()

    def test_no_snapshot_dirs(self, run_args):
        assert main(["run", *run_args]) == EXIT_CONFIG

    @pytest.mark.parametrize(
        "error, code",
        [
            (LockAlreadyHeld("busy"), EXIT_LOCK_HELD),
            (LockError("denied"), EXIT_LOCK_FAILED),
            (ToolError(["restic", "backup"], 12, "failed"), 12),
            (ParseError("Malformed timestamp"), 1),
        ],
    )
    def test_exit_codes(self, run_args, photos_dir, error, code):
        with mock.patch(
            "btrfs_restic.cli.run.run_reconciliation", side_effect=error
        ):
            assert main(["run", *run_args, str(photos_dir)]) == code

    def test_lock_held_end_to_end(self, run_args, photos_dir, tmp_path):
        from btrfs_restic.core.guards import process_lock

        with mock.patch("btrfs_restic.__util__.exec_subprocess") as run:
            with process_lock(tmp_path / "lock" / "test.lock"):
                code = main(["run", *run_args, str(photos_dir)])

        assert code == EXIT_LOCK_HELD
        run.assert_not_called()


class TestPruneCommand:
    """Tests for the prune command."""

    def test_keep_all_skips(self, run_args, photos_dir):
        with mock.patch("btrfs_restic.cli.prune.run_retention") as retention:
            assert main(["prune", *run_args, str(photos_dir)]) == 0
        retention.assert_not_called()

    def test_prunes(self, run_args, photos_dir):
        restic = FakeRestic(
            [
                make_record("/btrfs-restic/photos/vol", f"2024-01-0{i} 09:00:00")
                for i in range(1, 7)
            ]
        )
        with mock.patch(
            "btrfs_restic.endpoint.create_endpoints", return_value=(None, restic)
        ):
            code = main(["prune", *run_args, "-k", "3-5", str(photos_dir)])

        assert code == 0
        assert restic.forgets == [3]

    def test_reports_counts(self, run_args, photos_dir):
        result = RetentionResult(counts={"photos": 4})
        with mock.patch(
            "btrfs_restic.cli.prune.run_retention", return_value=result
        ) as retention:
            assert main(["prune", *run_args, "-k", "3-5", str(photos_dir)]) == 0
        assert retention.call_args.args[0].retention.max == 5


class TestStatusCommand:
    """Tests for the status command."""

    def test_shows_pending(self, run_args, photos_dir, capsys):
        restic = FakeRestic()
        with mock.patch(
            "btrfs_restic.endpoint.ResticEndpoint", return_value=restic
        ):
            assert main(["status", *run_args, str(photos_dir)]) == 0

        out = capsys.readouterr().out
        assert "/btrfs-restic/photos/vol" in out
        assert "1 subvolume(s) awaiting backup" in out
        assert restic.backups == []

    def test_up_to_date(self, run_args, photos_dir, capsys):
        restic = FakeRestic(
            [make_record("/btrfs-restic/photos/vol", "2024-01-01 09:00:00")]
        )
        with mock.patch(
            "btrfs_restic.endpoint.ResticEndpoint", return_value=restic
        ):
            assert main(["status", *run_args, str(photos_dir)]) == 0

        assert "0 subvolume(s) awaiting backup" in capsys.readouterr().out

    def test_missing_directory(self, run_args, tmp_path):
        assert main(["status", *run_args, str(tmp_path / "nope")]) == EXIT_CONFIG
