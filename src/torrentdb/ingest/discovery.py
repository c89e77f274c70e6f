"""Input discovery and the incremental scan gate."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from torrentdb.config import DEFAULT_TORRENT_GLOB


@dataclass(slots=True, frozen=True)
class ScanWindow:
    """Modification-time bounds for files admitted into one run.

    Files older than the previous scan were already seen; files newer than
    this scan's start may still be being written.
    """

    last_scan_time: int
    scan_time: int

    def admits(self, mtime: int) -> bool:
        """Return True when a file with this mtime should be processed."""
        return self.last_scan_time <= mtime <= self.scan_time


@dataclass(slots=True, frozen=True)
class Candidate:
    """One discovered input file."""

    path: Path
    mtime: int


def discover_torrent_files(torrent_dir: Path, pattern: str = DEFAULT_TORRENT_GLOB) -> list[Path]:
    """Glob input files with deterministic ordering."""
    return sorted(path for path in torrent_dir.glob(pattern) if path.is_file())


def stat_candidate(path: Path) -> Candidate:
    """Stat a discovered file, truncating its mtime to whole seconds."""
    return Candidate(path=path, mtime=int(path.stat().st_mtime))
