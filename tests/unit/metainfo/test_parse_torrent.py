from __future__ import annotations

import hashlib
from collections.abc import Callable
from pathlib import Path

import pytest

from torrentdb.metainfo import (
    EMPTY_NAME_PLACEHOLDER,
    ParseError,
    encode,
    load_torrent,
    parse_info,
    parse_torrent,
)
from torrentdb.security import ValidationError


def test_single_file_torrent(
    make_info: Callable[..., dict[bytes, object]],
    make_torrent: Callable[[dict[bytes, object]], bytes],
) -> None:
    info = make_info(name=b"movie.mkv", length=6)
    parsed = parse_torrent(make_torrent(info))

    assert parsed.name == "movie.mkv"
    assert parsed.length == 6
    assert parsed.file_count == 1
    assert parsed.files[0].path == "movie.mkv"
    assert parsed.files[0].length == 6
    assert parsed.piece_length == 2
    assert parsed.num_pieces == 3
    assert parsed.hash_hex == hashlib.sha1(encode(info)).hexdigest()


def test_multi_file_torrent_joins_root_and_parts(
    make_info: Callable[..., dict[bytes, object]],
    make_torrent: Callable[[dict[bytes, object]], bytes],
) -> None:
    info = make_info(
        name=b"album",
        files=[
            {b"length": 4, b"path": [b"cd1", b"track01.flac"]},
            {b"length": 1, b"path": [b"", b"cover.jpg"]},
        ],
    )
    parsed = parse_torrent(make_torrent(info))

    assert parsed.length == 5
    assert [entry.path for entry in parsed.files] == ["album/cd1/track01.flac", "album/cover.jpg"]
    assert parsed.file_count == 2


def test_hash_uses_raw_bytes_of_unsorted_info_dict() -> None:
    raw_info = b"d6:lengthi6e4:name1:x6:pieces60:" + b"\x02" * 60 + b"12:piece lengthi2ee"
    data = b"d4:info" + raw_info + b"8:announce3:urle"

    parsed = parse_torrent(data)

    assert parsed.hash == hashlib.sha1(raw_info).digest()
    canonical = encode(
        {b"length": 6, b"name": b"x", b"pieces": b"\x02" * 60, b"piece length": 2}
    )
    assert parsed.hash != hashlib.sha1(canonical).digest()


def test_hash_is_stable_across_loads(
    tmp_path: Path,
    make_info: Callable[..., dict[bytes, object]],
    make_torrent: Callable[[dict[bytes, object]], bytes],
) -> None:
    path = tmp_path / "a.torrent"
    path.write_bytes(make_torrent(make_info()))
    assert load_torrent(path).hash == load_torrent(path).hash


@pytest.mark.parametrize(("length", "accepted"), [(6, True), (5, True), (4, False), (7, False)])
def test_piece_accounting(
    length: int,
    accepted: bool,
    make_info: Callable[..., dict[bytes, object]],
) -> None:
    raw_info = encode(make_info(length=length, piece_length=2, num_pieces=3))
    if accepted:
        assert parse_info(raw_info).length == length
        return
    with pytest.raises(ParseError) as error:
        parse_info(raw_info)
    assert error.value.code == "INVALID_PIECE_LENGTH_ACCOUNTING"


def test_multi_file_accounting_uses_sum_of_lengths(
    make_info: Callable[..., dict[bytes, object]],
) -> None:
    info = make_info(
        piece_length=4,
        num_pieces=2,
        files=[{b"length": 3, b"path": [b"a"]}, {b"length": 2, b"path": [b"b"]}],
    )
    assert parse_info(encode(info)).length == 5

    info[b"files"] = [{b"length": 1, b"path": [b"a"]}]
    with pytest.raises(ParseError) as error:
        parse_info(encode(info))
    assert error.value.code == "INVALID_PIECE_LENGTH_ACCOUNTING"


@pytest.mark.parametrize(
    ("overrides", "code"),
    [
        ({b"piece length": 0}, "ZERO_PIECE_LENGTH"),
        ({b"pieces": b"\x00" * 21}, "INVALID_PIECE_TABLE"),
        ({b"pieces": b""}, "ZERO_PIECES"),
        ({b"piece length": b"two"}, "MALFORMED_INFO_DICT"),
        ({b"name": 5}, "MALFORMED_INFO_DICT"),
        ({b"files": b"nope"}, "MALFORMED_INFO_DICT"),
    ],
)
def test_info_dict_errors(
    overrides: dict[bytes, object],
    code: str,
    make_info: Callable[..., dict[bytes, object]],
) -> None:
    info = make_info()
    info.update(overrides)
    with pytest.raises(ParseError) as error:
        parse_info(encode(info))
    assert error.value.code == code


@pytest.mark.parametrize(
    ("data", "code"),
    [
        (b"not bencode", "MALFORMED_CONTAINER"),
        (b"d8:announce3:urle", "MISSING_INFO_DICT"),
        (b"d4:info0:e", "MALFORMED_INFO_DICT"),
        (b"d4:infoli1eee", "MALFORMED_INFO_DICT"),
    ],
)
def test_container_errors(data: bytes, code: str) -> None:
    with pytest.raises(ParseError) as error:
        parse_torrent(data)
    assert error.value.code == code


def test_empty_name_uses_placeholder(
    make_info: Callable[..., dict[bytes, object]],
    make_torrent: Callable[[dict[bytes, object]], bytes],
) -> None:
    parsed = parse_torrent(make_torrent(make_info(name=b"")))
    assert parsed.name == EMPTY_NAME_PLACEHOLDER
    assert parsed.files[0].path == EMPTY_NAME_PLACEHOLDER


def test_invalid_bytes_are_kept_in_name_and_cleaned_in_paths(
    make_info: Callable[..., dict[bytes, object]],
    make_torrent: Callable[[dict[bytes, object]], bytes],
) -> None:
    info = make_info(name=b"bad\xffname", files=[{b"length": 6, b"path": [b"f\xfeile"]}])
    parsed = parse_torrent(make_torrent(info))

    assert parsed.name == "bad\udcffname"
    assert parsed.files[0].path == "badname/file"


def test_path_traversal_is_rejected(
    make_info: Callable[..., dict[bytes, object]],
    make_torrent: Callable[[dict[bytes, object]], bytes],
) -> None:
    info = make_info(files=[{b"length": 6, b"path": [b"ok", b"..", b"etc"]}])
    with pytest.raises(ValidationError) as error:
        parse_torrent(make_torrent(info))
    assert error.value.code == "INVALID_PATH_TRAVERSAL"


@pytest.mark.parametrize(
    ("name", "path"),
    [
        (b"r", [b".\xff.", b".\xfe.", b"etc"]),
        (b"r", [b"x/../../etc"]),
        (b"..", [b"etc"]),
    ],
)
def test_no_file_path_leaves_the_torrent_root(
    name: bytes,
    path: list[bytes],
    make_info: Callable[..., dict[bytes, object]],
    make_torrent: Callable[[dict[bytes, object]], bytes],
) -> None:
    info = make_info(name=name, files=[{b"length": 6, b"path": path}])
    with pytest.raises(ValidationError) as error:
        parse_torrent(make_torrent(info))
    assert error.value.code == "INVALID_PATH_TRAVERSAL"
