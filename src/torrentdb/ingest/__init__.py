"""Incremental ingestion of torrent files."""

from .discovery import Candidate, ScanWindow, discover_torrent_files, stat_candidate
from .engine import (
    ConsistencyError,
    IngestionEngine,
    append_lines,
    new_record,
    run_ingest,
    update_in_place,
)

__all__ = [
    "Candidate",
    "ConsistencyError",
    "IngestionEngine",
    "ScanWindow",
    "append_lines",
    "discover_torrent_files",
    "new_record",
    "run_ingest",
    "stat_candidate",
    "update_in_place",
]
