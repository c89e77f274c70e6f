"""Append-only side files kept next to torrents.tsv."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path
from typing import TextIO

from torrentdb.metainfo import FileEntry
from torrentdb.store.codec import StoreError
from torrentdb.store.models import RunStats

STATS_HEADER = "{}\t{}\t{:>18}\t{:>10}\t{:>10}\t{:>10}\t{:>10}\t{:>10}\n".format(
    "scan unixtime",
    "scan datetime",
    "new",
    "updated",
    "rejected",
    "processed",
    "files",
    "db total",
)
FILES_BLOCK_TERMINATOR = "---"


class LedgerFormatError(StoreError):
    """Raised when stats.txt cannot be read back."""


def format_scan_datetime(unix_time: int) -> str:
    """Format a unix time as 'YYYY-MM-DD HH:MM' in UTC."""
    return datetime.fromtimestamp(unix_time, tz=UTC).strftime("%Y-%m-%d %H:%M")


def format_date(unix_time: float) -> str:
    """Format a unix time as 'YYYY-MM-DD' in UTC."""
    return datetime.fromtimestamp(unix_time, tz=UTC).strftime("%Y-%m-%d")


class StatsLedger:
    """One summary row per run; the last row bounds the next incremental scan."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        """Return on-disk ledger path."""
        return self._path

    def last_scan_time(self) -> int:
        """Return the first field of the last row, or 0 before the first run."""
        if not self._path.exists():
            return 0
        last_line = ""
        with self._path.open("r", encoding="utf-8") as handle:
            for line in handle:
                if line.strip():
                    last_line = line
        if not last_line or last_line.startswith("scan unixtime"):
            return 0
        first_field = last_line.split("\t", 1)[0].strip()
        try:
            return int(first_field)
        except ValueError as error:
            raise LedgerFormatError(
                f"Last row of {self._path.name} has no scan time: {first_field!r}"
            ) from error

    def append(self, stats: RunStats) -> None:
        """Append a summary row, writing the header on first use."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        write_header = not self._path.exists()
        with self._path.open("a", encoding="utf-8") as handle:
            if write_header:
                handle.write(STATS_HEADER)
            handle.write(
                f"{stats.scan_time}\t{format_scan_datetime(stats.scan_time)}\t"
                f"{stats.new:>10}\t{stats.updated:>10}\t{stats.rejected:>10}\t"
                f"{stats.processed:>10}\t{stats.files_seen:>10}\t{stats.total:>10}\n"
            )


def write_files_block(handle: TextIO, hash_hex: str, files: Iterable[FileEntry]) -> None:
    """Write one files.tsv block: header, one line per file, terminator."""
    handle.write(f"hash: {hash_hex}\n")
    for entry in files:
        handle.write(f"{entry.length}\t{entry.path}\n")
    handle.write(f"{FILES_BLOCK_TERMINATOR}\n")
    handle.flush()


class ErrorLog:
    """Append-only log of rejected inputs, one line per file."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        """Return on-disk log path."""
        return self._path

    def append(self, identifier: str, message: str) -> None:
        """Append '<timestamp> <identifier> <message>'."""
        timestamp = datetime.now(tz=UTC).strftime("%Y/%m/%d %H:%M:%S")
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8", errors="backslashreplace") as handle:
            handle.write(f"{timestamp} {identifier} {message}\n")
