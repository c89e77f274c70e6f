"""Ingestion of torrent files into the fixed-width store."""

from __future__ import annotations

import os
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from pathlib import Path
from typing import BinaryIO, TextIO

from torrentdb.config import StoreConfig
from torrentdb.ingest.discovery import ScanWindow, discover_torrent_files, stat_candidate
from torrentdb.logging import EventSink, JsonlEventLogger, NullEventLogger, RunEvent, utc_timestamp
from torrentdb.metainfo import Info, ParseError, load_torrent
from torrentdb.security import ValidationError, validate_info_text
from torrentdb.store import (
    ErrorLog,
    FieldOverflowError,
    Record,
    RunStats,
    SortedIndex,
    StatsLedger,
    StoreError,
    build_sorted_index,
    decode_record,
    encode_prefix,
    encode_record,
    format_date,
    format_scan_datetime,
    prefix_length,
    write_files_block,
)

IndexBuilder = Callable[[Path], SortedIndex]


class ConsistencyError(StoreError):
    """Raised when an in-place update does not read back as written."""


@dataclass(slots=True)
class _Counters:
    files_seen: int = 0
    skipped: int = 0
    duplicates: int = 0
    new: int = 0
    updated: int = 0
    rejected: int = 0


class IngestionEngine:
    """Classifies decoded torrents as known or new and applies them to the store.

    Known hashes are updated in place at the offset recorded by the sorted
    index and read back for verification. New hashes are buffered and
    appended once at the end of the run, with their file listing written to
    files.tsv immediately.
    """

    def __init__(
        self,
        config: StoreConfig,
        events: EventSink | None = None,
        index_builder: IndexBuilder = build_sorted_index,
        run_id: str = "run",
    ) -> None:
        self._config = config
        self._events: EventSink = events or NullEventLogger()
        self._index_builder = index_builder
        self._run_id = run_id
        self._error_log = ErrorLog(config.error_log_path)

    def ingest(self, paths: Sequence[Path], window: ScanWindow) -> RunStats:
        """Process input files in order and return the run's counters."""
        torrents_path = self._config.torrents_path
        torrents_path.parent.mkdir(parents=True, exist_ok=True)
        torrents_path.touch(exist_ok=True)
        index = self._index_builder(torrents_path)

        counters = _Counters(files_seen=len(paths))
        inserted: set[str] = set()
        pending: list[str] = []
        with (
            torrents_path.open("r+b") as store,
            self._config.files_path.open("a", encoding="utf-8") as files_handle,
        ):
            for path in paths:
                self._process_file(
                    path, window, index, store, files_handle, inserted, pending, counters
                )
            append_lines(store, pending)

        return RunStats(
            scan_time=window.scan_time,
            last_scan_time=window.last_scan_time,
            files_seen=counters.files_seen,
            skipped=counters.skipped,
            duplicates=counters.duplicates,
            new=counters.new,
            updated=counters.updated,
            rejected=counters.rejected,
            pre_existing_total=len(index),
        )

    def _process_file(
        self,
        path: Path,
        window: ScanWindow,
        index: SortedIndex,
        store: BinaryIO,
        files_handle: TextIO,
        inserted: set[str],
        pending: list[str],
        counters: _Counters,
    ) -> None:
        candidate = stat_candidate(path)
        if not window.admits(candidate.mtime):
            counters.skipped += 1
            return

        try:
            info = load_torrent(path)
        except (ParseError, ValidationError) as error:
            self._reject(counters, str(path), error.code, error.message)
            return

        hash_hex = info.hash_hex
        try:
            validate_info_text(info.name, (entry.path for entry in info.files))
        except ValidationError as error:
            self._reject(counters, hash_hex, error.code, error.message)
            return

        seen_date = format_date(candidate.mtime)
        offset = index.offset_of(hash_hex)
        try:
            if offset is not None:
                update_in_place(store, offset, hash_hex, seen_date)
                counters.updated += 1
                return
            if hash_hex in inserted:
                counters.duplicates += 1
                return
            pending.append(encode_record(new_record(info, seen_date)))
        except FieldOverflowError as error:
            self._reject(counters, hash_hex, "FIELD_OVERFLOW", str(error))
            return

        inserted.add(hash_hex)
        write_files_block(files_handle, hash_hex, info.files)
        counters.new += 1

    def _reject(self, counters: _Counters, identifier: str, code: str, message: str) -> None:
        counters.rejected += 1
        self._error_log.append(identifier, message)
        self._events.append(
            RunEvent(
                timestamp=utc_timestamp(),
                run_id=self._run_id,
                event="file_rejected",
                identifier=identifier,
                ok=False,
                error_code=code,
                metadata={"message": message},
            )
        )


def new_record(info: Info, seen_date: str) -> Record:
    """Build the first record for a newly seen torrent."""
    return Record(
        hash=info.hash_hex,
        size=info.length,
        files=info.file_count,
        first_seen=seen_date,
        last_seen=seen_date,
        hits=1,
        name=info.name,
    )


def update_in_place(store: BinaryIO, offset: int, hash_hex: str, seen_date: str) -> Record:
    """Bump hits and last_seen of the record at offset, rewriting only its prefix.

    Raises FieldOverflowError before writing when the new values do not fit,
    and ConsistencyError when the line does not belong to hash_hex or does
    not read back as written.
    """
    line = _read_line(store, offset)
    current = decode_record(line)
    if current.hash != hash_hex:
        raise ConsistencyError(f"modifying incorrect hash: {hash_hex} - {current.hash}")

    updated = replace(current, hits=current.hits + 1, last_seen=seen_date)
    prefix = encode_prefix(updated)
    if len(prefix) != prefix_length(line):
        raise ConsistencyError(
            f"record width changed for {hash_hex}: {prefix_length(line)} -> {len(prefix)}"
        )

    store.seek(offset)
    store.write(prefix.encode("ascii"))
    store.flush()

    written = decode_record(_read_line(store, offset))
    if written != updated:
        raise ConsistencyError(f"writing hash failed: {hash_hex} - {written.hash}")
    return updated


def append_lines(store: BinaryIO, lines: Sequence[str]) -> None:
    """Append encoded records at end of file, repairing a missing final newline."""
    if not lines:
        return
    end = store.seek(0, os.SEEK_END)
    if end > 0:
        store.seek(end - 1)
        needs_newline = store.read(1) != b"\n"
        store.seek(0, os.SEEK_END)
        if needs_newline:
            store.write(b"\n")
    store.write("".join(f"{line}\n" for line in lines).encode("utf-8"))
    store.flush()


def _read_line(store: BinaryIO, offset: int) -> str:
    store.seek(offset)
    raw = store.readline()
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as error:
        raise ConsistencyError(f"store line at offset {offset} is not valid UTF-8") from error


def run_ingest(
    config: StoreConfig,
    torrent_dir: Path,
    out: TextIO,
    clock: Callable[[], float] = time.time,
) -> RunStats:
    """Run one incremental ingestion and append its row to stats.txt."""
    ledger = StatsLedger(config.stats_path)
    last_scan_time = ledger.last_scan_time()
    out.write(f"* last scan: {format_scan_datetime(last_scan_time)}\n")

    scan_time = int(clock())
    run_id = f"run-{scan_time}"
    events: EventSink = NullEventLogger()
    if config.logging.events_enabled:
        events = JsonlEventLogger(config.events_path)
    events.append(
        RunEvent(
            timestamp=utc_timestamp(),
            run_id=run_id,
            event="run_started",
            identifier=str(torrent_dir),
            ok=True,
            error_code=None,
            metadata={"last_scan_time": last_scan_time, "scan_time": scan_time},
        )
    )

    try:
        out.write("* finding all torrent files in the directory...\n")
        paths = discover_torrent_files(torrent_dir, config.ingest.torrent_glob)
        out.write("* parsing torrent files and updating the store...\n")
        engine = IngestionEngine(config, events=events, run_id=run_id)
        stats = engine.ingest(paths, ScanWindow(last_scan_time=last_scan_time, scan_time=scan_time))
        out.write("* writing stats...\n")
        ledger.append(stats)
    except (StoreError, OSError) as error:
        events.append(
            RunEvent(
                timestamp=utc_timestamp(),
                run_id=run_id,
                event="run_failed",
                identifier=str(torrent_dir),
                ok=False,
                error_code=type(error).__name__,
                metadata={"message": str(error)},
            )
        )
        raise

    events.append(
        RunEvent(
            timestamp=utc_timestamp(),
            run_id=run_id,
            event="run_finished",
            identifier=str(torrent_dir),
            ok=True,
            error_code=None,
            metadata={
                "new": stats.new,
                "updated": stats.updated,
                "rejected": stats.rejected,
                "skipped": stats.skipped,
                "duplicates": stats.duplicates,
                "files": stats.files_seen,
                "total": stats.total,
            },
        )
    )
    return stats
