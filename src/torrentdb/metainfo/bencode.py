"""Bencode decoding with raw value spans, plus a canonical encoder."""

from __future__ import annotations

from dataclasses import dataclass

MAX_NESTING_DEPTH = 256

BencodeValue = int | bytes | list["BencodeValue"] | dict[bytes, "BencodeValue"]


class BencodeError(Exception):
    """Raised when input is not well-formed bencode."""


@dataclass(slots=True, frozen=True)
class ValueSpan:
    """Byte range of one encoded value inside its source buffer."""

    start: int
    end: int


class BencodeDecoder:
    """Cursor-based decoder over a bytes buffer."""

    def __init__(self, data: bytes) -> None:
        if not isinstance(data, (bytes, bytearray)):
            raise TypeError("BencodeDecoder expects bytes or bytearray")
        self.data = bytes(data)
        self.i = 0

    def decode(self) -> BencodeValue:
        """Decode the entire input, rejecting trailing data."""
        value = self._parse_value(0)
        if self.i != len(self.data):
            raise BencodeError(f"Extra data after valid bencode: {len(self.data) - self.i} bytes")
        return value

    def decode_dict_spans(self) -> tuple[dict[bytes, BencodeValue], dict[bytes, ValueSpan]]:
        """Decode a top-level dictionary and record the raw span of each value.

        Bytes after the closing ``e`` are ignored.
        """
        if self.data[self.i : self.i + 1] != b"d":
            raise BencodeError("Top-level value is not a dictionary")
        self.i += 1
        values: dict[bytes, BencodeValue] = {}
        spans: dict[bytes, ValueSpan] = {}
        while True:
            if self.i >= len(self.data):
                raise BencodeError("Unexpected end of data inside dict")
            if self.data[self.i : self.i + 1] == b"e":
                self.i += 1
                break
            key = self._parse_bytestring()
            start = self.i
            values[key] = self._parse_value(1)
            spans[key] = ValueSpan(start=start, end=self.i)
        return values, spans

    def _parse_value(self, depth: int) -> BencodeValue:
        if depth > MAX_NESTING_DEPTH:
            raise BencodeError(f"Nesting deeper than {MAX_NESTING_DEPTH} levels")
        if self.i >= len(self.data):
            raise BencodeError("Unexpected end of data while parsing value")

        c = self.data[self.i : self.i + 1]
        if c == b"i":
            return self._parse_int()
        if c == b"l":
            return self._parse_list(depth)
        if c == b"d":
            return self._parse_dict(depth)
        if b"0" <= c <= b"9":
            return self._parse_bytestring()
        raise BencodeError(f"Invalid bencode prefix byte {c!r} at position {self.i}")

    # integer: i<digits>e

    def _parse_int(self) -> int:
        self.i += 1
        end = self.data.find(b"e", self.i)
        if end == -1:
            raise BencodeError("Missing 'e' terminator for integer")

        int_bytes = self.data[self.i : end]
        if not int_bytes:
            raise BencodeError("Empty integer")
        digits = int_bytes[1:] if int_bytes[0:1] == b"-" else int_bytes
        if not digits or not digits.isdigit():
            raise BencodeError(f"Invalid integer digits: {int_bytes!r}")
        if digits[0:1] == b"0" and (len(digits) > 1 or int_bytes[0:1] == b"-"):
            raise BencodeError(f"Non-canonical integer: {int_bytes!r}")

        self.i = end + 1
        return int(int_bytes)

    # bytestring: <len>:<data>

    def _parse_bytestring(self) -> bytes:
        colon = self.data.find(b":", self.i)
        if colon == -1:
            raise BencodeError("Missing ':' in bytestring length")

        len_bytes = self.data[self.i : colon]
        if not len_bytes or not len_bytes.isdigit():
            raise BencodeError(f"Invalid bytestring length: {len_bytes!r}")
        if len_bytes[0:1] == b"0" and len(len_bytes) > 1:
            raise BencodeError(f"Leading zeros not allowed in bytestring length: {len_bytes!r}")

        start = colon + 1
        end = start + int(len_bytes)
        if end > len(self.data):
            raise BencodeError("Bytestring length exceeds available data")
        self.i = end
        return self.data[start:end]

    # list: l<value>...e

    def _parse_list(self, depth: int) -> list[BencodeValue]:
        self.i += 1
        result: list[BencodeValue] = []
        while True:
            if self.i >= len(self.data):
                raise BencodeError("Unexpected end of data inside list")
            if self.data[self.i : self.i + 1] == b"e":
                self.i += 1
                return result
            result.append(self._parse_value(depth + 1))

    # dict: d<key><value>...e

    def _parse_dict(self, depth: int) -> dict[bytes, BencodeValue]:
        self.i += 1
        result: dict[bytes, BencodeValue] = {}
        while True:
            if self.i >= len(self.data):
                raise BencodeError("Unexpected end of data inside dict")
            if self.data[self.i : self.i + 1] == b"e":
                self.i += 1
                return result
            key = self._parse_bytestring()
            result[key] = self._parse_value(depth + 1)


def decode(data: bytes) -> BencodeValue:
    """Decode a complete bencoded buffer."""
    return BencodeDecoder(data).decode()


def decode_dict_spans(data: bytes) -> tuple[dict[bytes, BencodeValue], dict[bytes, ValueSpan]]:
    """Decode a top-level dictionary, returning values and their raw byte spans."""
    return BencodeDecoder(data).decode_dict_spans()


def encode(obj: object) -> bytes:
    """Encode ints, bytes, str, lists and dicts; dictionary keys are sorted."""
    if isinstance(obj, bool):
        raise TypeError("Cannot bencode bool")
    if isinstance(obj, int):
        return b"i" + str(obj).encode("ascii") + b"e"
    if isinstance(obj, str):
        obj = obj.encode("utf-8")
    if isinstance(obj, (bytes, bytearray)):
        return str(len(obj)).encode("ascii") + b":" + bytes(obj)
    if isinstance(obj, (list, tuple)):
        return b"l" + b"".join(encode(item) for item in obj) + b"e"
    if isinstance(obj, dict):
        items: list[tuple[bytes, object]] = []
        for key, value in obj.items():
            raw_key = key.encode("utf-8") if isinstance(key, str) else key
            if not isinstance(raw_key, bytes):
                raise TypeError(f"Dictionary keys must be bytes or str, got {type(key)}")
            items.append((raw_key, value))
        items.sort(key=lambda item: item[0])
        return b"d" + b"".join(encode(k) + encode(v) for k, v in items) + b"e"
    raise TypeError(f"Cannot bencode object of type {type(obj)}")
