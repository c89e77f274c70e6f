from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path

import pytest

from torrentdb.metainfo import encode


def info_dict(
    name: bytes = b"file.bin",
    length: int = 6,
    piece_length: int = 2,
    num_pieces: int = 3,
    files: list[dict[bytes, object]] | None = None,
) -> dict[bytes, object]:
    """Build an info dictionary; a files list selects multi-file mode."""
    info: dict[bytes, object] = {
        b"name": name,
        b"piece length": piece_length,
        b"pieces": b"\x01" * 20 * num_pieces,
    }
    if files is None:
        info[b"length"] = length
    else:
        info[b"files"] = files
    return info


def torrent_bytes(info: dict[bytes, object]) -> bytes:
    """Wrap an info dictionary in a metainfo container."""
    return encode({b"announce": b"http://tracker.invalid/announce", b"info": info})


@pytest.fixture
def make_info() -> Callable[..., dict[bytes, object]]:
    return info_dict


@pytest.fixture
def make_torrent() -> Callable[[dict[bytes, object]], bytes]:
    return torrent_bytes


@pytest.fixture
def write_torrent(tmp_path: Path) -> Callable[..., Path]:
    """Write a torrent under the two-level input layout with a fixed mtime."""

    def write(relative: str, info: dict[bytes, object], mtime: int) -> Path:
        path = tmp_path / "torrents" / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(torrent_bytes(info))
        os.utime(path, (mtime, mtime))
        return path

    return write
