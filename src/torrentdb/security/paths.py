"""Name and path sanitization for torrent metadata."""

from __future__ import annotations

import posixpath
import unicodedata
from collections.abc import Iterable, Sequence
from typing import Final

SURROGATE_ESCAPE_LOW: Final[int] = 0xDC80
SURROGATE_ESCAPE_HIGH: Final[int] = 0xDCFF


class ValidationError(Exception):
    """Raised when a torrent name or path violates ingestion policy."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


def decode_text(raw: bytes) -> str:
    """Decode UTF-8, keeping invalid bytes as surrogate escapes."""
    return raw.decode("utf-8", errors="surrogateescape")


def clean_name(text: str) -> str:
    """Delete invalid-encoding bytes so the result is always valid text."""
    raw = text.encode("utf-8", errors="surrogateescape")
    return raw.decode("utf-8", errors="ignore")


def join_clean_path(parts: Iterable[str]) -> str:
    """Join path components with '/', dropping empty and '.' segments.

    Raises ValidationError when the joined path is absolute or leaves its root.
    """
    kept = [part for part in parts if part]
    if not kept:
        return ""
    joined = posixpath.normpath("/".join(kept))
    if joined.startswith("/") or joined == ".." or joined.startswith("../"):
        raise ValidationError(
            code="INVALID_PATH_TRAVERSAL",
            message=f"invalid file name: {joined!r}",
        )
    return joined


def validate_file_paths(paths: Sequence[Sequence[str]]) -> None:
    """Reject any multi-file path holding a '..' segment, before or after cleaning.

    Components are also split on '/' so an embedded 'a/../..' is caught.
    """
    for path in paths:
        for part in path:
            segments = (*part.split("/"), *clean_name(part).split("/"))
            if any(segment.strip() == ".." for segment in segments):
                joined = "/".join(path)
                raise ValidationError(
                    code="INVALID_PATH_TRAVERSAL",
                    message=f"invalid file name: {printable_text(joined)!r}",
                )


def find_disallowed_char(text: str) -> tuple[int, str, str] | None:
    """Return (1-based index, char, code) of the first disallowed character."""
    for index, char in enumerate(text, start=1):
        point = ord(char)
        if SURROGATE_ESCAPE_LOW <= point <= SURROGATE_ESCAPE_HIGH:
            return index, char, "INVALID_ENCODING"
        if unicodedata.category(char) == "Cc":
            return index, char, "CONTROL_CHARACTER"
    return None


def check_allowed_text(text: str, field: str) -> None:
    """Raise ValidationError when text holds invalid bytes or control characters."""
    found = find_disallowed_char(text)
    if found is None:
        return
    index, char, code = found
    point = ord(char)
    if code == "INVALID_ENCODING":
        detail = f"invalid byte 0x{point - 0xDC00:02x}"
    else:
        detail = f"0x{point:02x} U+{point:04X}"
    raise ValidationError(
        code=code,
        message=f"not allowed char {index}: {detail}; in {field}: {printable_text(text)}",
    )


def validate_info_text(name: str, file_paths: Iterable[str]) -> None:
    """Apply the strict text check to a torrent name and all of its file paths."""
    check_allowed_text(name, "name")
    for path in file_paths:
        check_allowed_text(path, "filename")


def printable_text(text: str) -> str:
    """Render text on one line, escaping invalid bytes and control characters."""
    raw = text.encode("utf-8", errors="surrogateescape")
    decoded = raw.decode("utf-8", errors="backslashreplace")
    return "".join(
        f"\\x{ord(char):02x}" if unicodedata.category(char) == "Cc" else char
        for char in decoded
    )
