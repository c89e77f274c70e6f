"""Fixed-width flat-file store."""

from .codec import (
    DEFAULT_SCHEMA,
    ColumnSchema,
    FieldOverflowError,
    MalformedRecordError,
    StoreError,
    decode_record,
    encode_prefix,
    encode_record,
    prefix_length,
)
from .index import SortedIndex, build_sorted_index
from .ledger import (
    ErrorLog,
    LedgerFormatError,
    StatsLedger,
    format_date,
    format_scan_datetime,
    write_files_block,
)
from .models import Record, RunStats

__all__ = [
    "ColumnSchema",
    "DEFAULT_SCHEMA",
    "ErrorLog",
    "FieldOverflowError",
    "LedgerFormatError",
    "MalformedRecordError",
    "Record",
    "RunStats",
    "SortedIndex",
    "StatsLedger",
    "StoreError",
    "build_sorted_index",
    "decode_record",
    "encode_prefix",
    "encode_record",
    "format_date",
    "format_scan_datetime",
    "prefix_length",
    "write_files_block",
]
