"""Torrent metainfo decoding."""

from .bencode import BencodeDecoder, BencodeError, ValueSpan, decode, decode_dict_spans, encode
from .decoder import (
    EMPTY_NAME_PLACEHOLDER,
    FileEntry,
    Info,
    ParseError,
    load_torrent,
    parse_info,
    parse_torrent,
)

__all__ = [
    "BencodeDecoder",
    "BencodeError",
    "EMPTY_NAME_PLACEHOLDER",
    "FileEntry",
    "Info",
    "ParseError",
    "ValueSpan",
    "decode",
    "decode_dict_spans",
    "encode",
    "load_torrent",
    "parse_info",
    "parse_torrent",
]
