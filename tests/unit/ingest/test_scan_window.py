from __future__ import annotations

import os
from pathlib import Path

import pytest

from torrentdb.ingest import ScanWindow, discover_torrent_files, stat_candidate


@pytest.mark.parametrize(
    ("mtime", "admitted"),
    [(99, False), (100, True), (150, True), (200, True), (201, False)],
)
def test_window_bounds_are_inclusive(mtime: int, admitted: bool) -> None:
    assert ScanWindow(last_scan_time=100, scan_time=200).admits(mtime) is admitted


def test_discovery_follows_two_level_layout(tmp_path: Path) -> None:
    for relative in ["a/1/x.torrent", "b/2/y.torrent", "top.torrent", "a/1/deep/z.torrent"]:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"")
    (tmp_path / "c" / "3" / "dir.torrent").mkdir(parents=True)

    found = discover_torrent_files(tmp_path)

    assert found == [tmp_path / "a/1/x.torrent", tmp_path / "b/2/y.torrent"]


def test_custom_pattern(tmp_path: Path) -> None:
    (tmp_path / "flat.torrent").write_bytes(b"")
    assert discover_torrent_files(tmp_path, "*.torrent") == [tmp_path / "flat.torrent"]


def test_stat_candidate_truncates_mtime(tmp_path: Path) -> None:
    path = tmp_path / "f.torrent"
    path.write_bytes(b"")
    os.utime(path, (1000.75, 1000.75))
    assert stat_candidate(path).mtime == 1000
