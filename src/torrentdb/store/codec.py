"""Fixed-width line codec for torrents.tsv records.

Every column before the name has a declared width. In-place updates rewrite
only that fixed-width prefix, so a value must never print wider than its
column: encoding such a value raises ``FieldOverflowError`` before anything
reaches the file.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final

from torrentdb.store.models import Record

FIELD_SEPARATOR: Final[str] = "\t"
FIELD_COUNT: Final[int] = 7
HASH_PATTERN: Final[re.Pattern[str]] = re.compile(r"[0-9a-f]{40}")
DATE_PATTERN: Final[re.Pattern[str]] = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


@dataclass(slots=True, frozen=True)
class ColumnSchema:
    """Printed widths of the fixed columns."""

    hash: int = 40
    size: int = 14
    files: int = 11
    date: int = 10
    hits: int = 5

    @property
    def prefix_width(self) -> int:
        """Return the character width of the fixed prefix, trailing tab included."""
        return self.hash + self.size + self.files + 2 * self.date + self.hits + 6


DEFAULT_SCHEMA = ColumnSchema()


class StoreError(Exception):
    """Base class for store failures that must abort a run."""


class MalformedRecordError(StoreError):
    """Raised when a store line cannot be decoded."""


class FieldOverflowError(Exception):
    """Raised when a value does not fit its declared column width."""

    def __init__(self, field: str, value: object, width: int) -> None:
        super().__init__(f"Field '{field}' value {value!r} does not fit width {width}.")
        self.field = field
        self.value = value
        self.width = width


def encode_prefix(record: Record, schema: ColumnSchema = DEFAULT_SCHEMA) -> str:
    """Encode the fixed-width columns, ending with the tab before the name."""
    if not HASH_PATTERN.fullmatch(record.hash):
        raise FieldOverflowError("hash", record.hash, schema.hash)
    columns = [
        record.hash,
        _pad_int("size", record.size, schema.size),
        _pad_int("files", record.files, schema.files),
        _check_date("first_seen", record.first_seen, schema.date),
        _check_date("last_seen", record.last_seen, schema.date),
        _pad_int("hits", record.hits, schema.hits),
    ]
    return FIELD_SEPARATOR.join(columns) + FIELD_SEPARATOR


def encode_record(record: Record, schema: ColumnSchema = DEFAULT_SCHEMA) -> str:
    """Encode a record as one line without the trailing newline."""
    if FIELD_SEPARATOR in record.name or "\n" in record.name:
        raise MalformedRecordError(f"Record name for {record.hash} holds a separator.")
    return encode_prefix(record, schema) + record.name


def decode_record(line: str) -> Record:
    """Decode one store line; numeric and date columns are trimmed."""
    fields = line.rstrip("\r\n").split(FIELD_SEPARATOR)
    if len(fields) != FIELD_COUNT:
        raise MalformedRecordError(
            f"Expected {FIELD_COUNT} fields, found {len(fields)}: {line[:80]!r}"
        )
    hash_value = fields[0].strip()
    if not HASH_PATTERN.fullmatch(hash_value):
        raise MalformedRecordError(f"Invalid hash field: {fields[0]!r}")
    first_seen = fields[3].strip()
    last_seen = fields[4].strip()
    for date in (first_seen, last_seen):
        if not DATE_PATTERN.fullmatch(date):
            raise MalformedRecordError(f"Invalid date field in {hash_value}: {date!r}")
    return Record(
        hash=hash_value,
        size=_parse_int("size", fields[1], hash_value),
        files=_parse_int("files", fields[2], hash_value),
        first_seen=first_seen,
        last_seen=last_seen,
        hits=_parse_int("hits", fields[5], hash_value),
        name=fields[6],
    )


def prefix_length(line: str) -> int:
    """Return the character length of a line's fixed prefix, trailing tab included."""
    position = -1
    for _ in range(FIELD_COUNT - 1):
        position = line.find(FIELD_SEPARATOR, position + 1)
        if position == -1:
            raise MalformedRecordError(f"Line has too few fields: {line[:80]!r}")
    return position + 1


def _pad_int(field: str, value: int, width: int) -> str:
    text = str(value)
    if value < 0 or len(text) > width:
        raise FieldOverflowError(field, value, width)
    return text.rjust(width)


def _check_date(field: str, value: str, width: int) -> str:
    if len(value) != width or not DATE_PATTERN.fullmatch(value):
        raise FieldOverflowError(field, value, width)
    return value


def _parse_int(field: str, raw: str, hash_value: str) -> int:
    text = raw.strip()
    if not (text.isascii() and text.isdigit()):
        raise MalformedRecordError(f"Invalid {field} field in {hash_value}: {raw!r}")
    return int(text)
