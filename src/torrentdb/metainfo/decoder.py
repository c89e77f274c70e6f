"""Decode torrent metainfo into validated Info records."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from pathlib import Path

from torrentdb.metainfo.bencode import BencodeDecoder, BencodeError, BencodeValue
from torrentdb.security import clean_name, decode_text, join_clean_path, validate_file_paths

PIECE_HASH_SIZE = 20
EMPTY_NAME_PLACEHOLDER = "__empty_name_field_in_info_dict__"


class ParseError(Exception):
    """Raised when metainfo bytes cannot be decoded into a valid Info."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


@dataclass(slots=True, frozen=True)
class FileEntry:
    """One file inside a torrent."""

    path: str
    length: int


@dataclass(slots=True, frozen=True)
class Info:
    """Validated content of a torrent info dictionary."""

    name: str
    hash: bytes
    length: int
    files: tuple[FileEntry, ...]
    piece_length: int
    num_pieces: int

    @property
    def hash_hex(self) -> str:
        """Return the info-hash as 40 lowercase hex characters."""
        return self.hash.hex()

    @property
    def file_count(self) -> int:
        """Return the number of files described by the torrent."""
        return len(self.files)


@dataclass(slots=True, frozen=True)
class _RawFile:
    length: int
    path: tuple[str, ...]


def load_torrent(path: str | Path) -> Info:
    """Read and decode a .torrent file."""
    return parse_torrent(Path(path).read_bytes())


def parse_torrent(data: bytes) -> Info:
    """Decode a metainfo container and its info dictionary."""
    try:
        _, spans = BencodeDecoder(data).decode_dict_spans()
    except BencodeError as error:
        raise ParseError(
            code="MALFORMED_CONTAINER",
            message=f"Error when decoding metainfo dictionary: {error}",
        ) from error

    span = spans.get(b"info")
    if span is None or span.end == span.start:
        raise ParseError(code="MISSING_INFO_DICT", message="No info dict in torrent file.")
    return parse_info(data[span.start : span.end])


def parse_info(raw_info: bytes) -> Info:
    """Decode and validate the raw bytes of an info dictionary.

    The info-hash is the SHA-1 of ``raw_info`` itself, never of a re-encoding.
    """
    try:
        fields = BencodeDecoder(raw_info).decode()
    except BencodeError as error:
        raise ParseError(
            code="MALFORMED_INFO_DICT",
            message=f"Error when decoding info dictionary: {error}",
        ) from error
    if not isinstance(fields, dict):
        raise ParseError(code="MALFORMED_INFO_DICT", message="Info value is not a dictionary.")

    piece_length = _optional_count(fields, b"piece length")
    pieces = _optional_bytes(fields, b"pieces")
    raw_name = decode_text(_optional_bytes(fields, b"name"))
    single_length = _optional_count(fields, b"length")
    raw_files = _file_list(fields.get(b"files"))

    if piece_length == 0:
        raise ParseError(code="ZERO_PIECE_LENGTH", message="Torrent has zero piece length.")
    if len(pieces) % PIECE_HASH_SIZE != 0:
        raise ParseError(code="INVALID_PIECE_TABLE", message="Invalid piece data.")
    num_pieces = len(pieces) // PIECE_HASH_SIZE
    if num_pieces == 0:
        raise ParseError(code="ZERO_PIECES", message="Torrent has zero pieces.")

    validate_file_paths([item.path for item in raw_files])

    if raw_files:
        root = clean_name(raw_name)
        files = tuple(
            FileEntry(
                path=join_clean_path([root, *(clean_name(part) for part in item.path)]),
                length=item.length,
            )
            for item in raw_files
        )
        length = sum(item.length for item in raw_files)
    else:
        length = single_length
        files = (FileEntry(path=clean_name(raw_name or EMPTY_NAME_PLACEHOLDER), length=length),)

    delta = piece_length * num_pieces - length
    if delta < 0 or delta >= piece_length:
        raise ParseError(
            code="INVALID_PIECE_LENGTH_ACCOUNTING",
            message=(
                f"Invalid piece length: {num_pieces} pieces of {piece_length} bytes "
                f"cannot hold {length} bytes."
            ),
        )

    return Info(
        name=raw_name or EMPTY_NAME_PLACEHOLDER,
        hash=hashlib.sha1(raw_info).digest(),  # noqa: S324
        length=length,
        files=files,
        piece_length=piece_length,
        num_pieces=num_pieces,
    )


def _optional_count(fields: dict[bytes, BencodeValue], key: bytes) -> int:
    value = fields.get(key, 0)
    if not isinstance(value, int) or value < 0:
        raise ParseError(
            code="MALFORMED_INFO_DICT",
            message=f"Info field '{key.decode()}' must be a non-negative integer.",
        )
    return value


def _optional_bytes(fields: dict[bytes, BencodeValue], key: bytes) -> bytes:
    value = fields.get(key, b"")
    if not isinstance(value, bytes):
        raise ParseError(
            code="MALFORMED_INFO_DICT",
            message=f"Info field '{key.decode()}' must be a byte string.",
        )
    return value


def _file_list(value: BencodeValue | None) -> list[_RawFile]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ParseError(code="MALFORMED_INFO_DICT", message="Info field 'files' must be a list.")
    output: list[_RawFile] = []
    for entry in value:
        if not isinstance(entry, dict):
            raise ParseError(
                code="MALFORMED_INFO_DICT",
                message="Info field 'files' must contain dictionaries.",
            )
        length = _optional_count(entry, b"length")
        path = entry.get(b"path", [])
        if not isinstance(path, list) or not all(isinstance(part, bytes) for part in path):
            raise ParseError(
                code="MALFORMED_INFO_DICT",
                message="File field 'path' must be a list of byte strings.",
            )
        output.append(_RawFile(length=length, path=tuple(decode_text(part) for part in path)))
    return output
