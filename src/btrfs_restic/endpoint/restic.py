# pyright: standard

"""btrfs-restic: btrfs_restic/endpoint/restic.py
Adapter around the restic command line.

``restic snapshots`` only offers a human readable table, so the listing is
parsed defensively: column offsets come from the table header and every
record must carry a well formed ``YYYY-MM-DD HH:MM:SS`` time. Anything that
does not fit raises ParseError instead of being read as "no backup".
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import NamedTuple, Optional

from btrfs_restic import __util__
from btrfs_restic.__logger__ import logger

from .common import Endpoint

SNAPSHOT_ID_RE = re.compile(r"^[0-9a-f]{8,64}$")
FOOTER_RE = re.compile(r"^\d+ snapshots?$")
REPOSITORY_OPENED_RE = re.compile(r"^repository [0-9a-f]+ opened\b")
TIME_WIDTH = len("YYYY-MM-DD HH:MM:SS")


@dataclass(frozen=True)
class BackupRecord:
    """One snapshot listed by restic."""

    snapshot_id: str
    time: datetime
    host: str
    paths: tuple[str, ...] = field(default_factory=tuple)


class _Columns(NamedTuple):
    time: int
    host: int
    tags: int
    paths: int
    paths_end: Optional[int]


def _header_columns(line: str, lineno: int) -> _Columns:
    offsets = {}
    for name in ("Time", "Host", "Tags", "Paths"):
        match = re.search(rf"\b{name}\b", line)
        if match is None:
            raise __util__.ParseError(
                f"line {lineno}: snapshot table header lacks {name!r}: {line!r}"
            )
        offsets[name] = match.start()
    size = re.search(r"\bSize\b", line)
    return _Columns(
        time=offsets["Time"],
        host=offsets["Host"],
        tags=offsets["Tags"],
        paths=offsets["Paths"],
        paths_end=size.start() if size else None,
    )


def parse_snapshot_listing(text: str) -> list[BackupRecord]:
    """Parse the table printed by ``restic snapshots``.

    The ``repository ... opened`` line restic prints before the table is
    skipped, as are continuation rows that only carry further tags.

    Raises:
        ParseError: On any line that is neither decoration nor a valid record.
    """
    columns: Optional[_Columns] = None
    records: list[BackupRecord] = []

    for lineno, line in enumerate(text.splitlines(), 1):
        stripped = line.strip()
        if (
            not stripped
            or set(stripped) == {"-"}
            or FOOTER_RE.match(stripped)
            or stripped.endswith(":")
        ):
            continue

        if stripped.startswith("ID ") and "Time" in stripped:
            columns = _header_columns(line, lineno)
            continue

        if columns is None:
            if REPOSITORY_OPENED_RE.match(stripped):
                continue
            raise __util__.ParseError(
                f"line {lineno}: record before snapshot table header: {line!r}"
            )

        path = line[columns.paths : columns.paths_end].strip()

        if line[0].isspace():
            # further tags or paths of the previous snapshot
            tags = line[columns.tags : columns.paths].strip()
            if not records or not (path or tags):
                raise __util__.ParseError(f"line {lineno}: unexpected line: {line!r}")
            if not path:
                continue
            last = records[-1]
            records[-1] = BackupRecord(
                last.snapshot_id, last.time, last.host, last.paths + (path,)
            )
            continue

        snapshot_id = line[: columns.time].strip()
        if not SNAPSHOT_ID_RE.match(snapshot_id):
            raise __util__.ParseError(
                f"line {lineno}: malformed snapshot id {snapshot_id!r}"
            )

        time_field = line[columns.time : columns.time + TIME_WIDTH]
        try:
            time_obj = __util__.parse_timestamp(time_field)
        except __util__.ParseError as e:
            raise __util__.ParseError(f"line {lineno}: {e}") from e

        if not path:
            raise __util__.ParseError(f"line {lineno}: snapshot without path: {line!r}")

        records.append(
            BackupRecord(
                snapshot_id=snapshot_id,
                time=time_obj,
                host=line[columns.host : columns.tags].strip(),
                paths=(path,),
            )
        )

    return records


class ResticEndpoint(Endpoint):
    """Run restic against the configured repository."""

    def __init__(self, config=None, **kwargs) -> None:
        """
        Initialize the ResticEndpoint.

        Args:
            config (dict): Needs ``restic_cmd`` and ``cache_dir``; ``verbose``
                and ``dry_run`` are optional.
            kwargs: Additional settings merged into the configuration.
        """
        super().__init__(config=config, **kwargs)
        config = config or {}
        self.config["restic_cmd"] = list(config.get("restic_cmd", ["restic"]))
        self.config["cache_dir"] = Path(config.get("cache_dir", "/var/cache/restic"))
        self.config["verbose"] = config.get("verbose", False)

    def __repr__(self) -> str:
        return " ".join(self.config["restic_cmd"])

    def list_snapshots(self, host: str, latest: bool = False) -> list[BackupRecord]:
        """List the snapshots of ``host``; only the newest per path if ``latest``."""
        cmd = self._build_command("snapshots", "--host", host)
        if latest:
            cmd += ["--latest", "1"]
        output = self._exec_command(cmd, capture=True, read_only=True)
        records = parse_snapshot_listing(output or "")
        logger.debug("restic listed %d snapshot(s) for host %s", len(records), host)
        return records

    def backup(self, path, time_obj: datetime, host: str) -> None:
        """Back up ``path`` recording ``time_obj`` as the snapshot time."""
        cmd = self._build_command(
            "backup", "--host", host, "--time", __util__.format_timestamp(time_obj)
        )
        if self.config["verbose"]:
            cmd.append("--verbose")
        cmd.append(str(path))
        self._exec_command(cmd)

    def forget(self, keep_last: int) -> None:
        """Forget all but the last ``keep_last`` snapshots per path and prune."""
        cmd = self._build_command("forget", "--keep-last", str(keep_last), "--prune")
        self._exec_command(cmd)

    def _prepare(self) -> None:
        self.makedirs(self.config["cache_dir"])

    def _build_command(self, *args) -> list[str]:
        return [
            *self.config["restic_cmd"],
            "--cache-dir",
            str(self.config["cache_dir"]),
            *args,
        ]
