"""Read-only search over torrents.tsv and files.tsv.

Lines are fed through a bounded queue to a fixed pool of workers that apply
stateless predicates. Matches are collected in arrival order, which is not
deterministic, and are sorted explicitly once every worker has finished.
"""

from __future__ import annotations

import queue
import re
import threading
from collections.abc import Callable, Iterable, Iterator
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO, TypeVar

from torrentdb.store import MalformedRecordError, Record, decode_record

MIB = 1024 * 1024
MATCH_MODES = ("ordered", "unordered", "any", "regexp")
SORT_KEYS = ("hits", "name", "size", "files", "first_seen", "last_seen")
QUEUE_SIZE_PER_WORKER = 4

T = TypeVar("T")


@dataclass(slots=True, frozen=True)
class QueryOptions:
    """Filters and ordering for one search; sizes are in MiB, dates YYYY-MM-DD."""

    text: str = ""
    mode: str = "ordered"
    search_files: bool = False
    min_size_mb: int = 0
    max_size_mb: int | None = None
    min_hits: int = 0
    max_hits: int | None = None
    min_files: int = 0
    max_files: int | None = None
    min_first_seen: str = "1970-01-01"
    max_first_seen: str = "2100-01-01"
    min_last_seen: str = "1970-01-01"
    max_last_seen: str = "2100-01-01"
    sort_key: str = "hits"


@dataclass(slots=True, frozen=True)
class FileListing:
    """One files.tsv block."""

    hash: str
    entries: tuple[tuple[int, str], ...]


@dataclass(slots=True, frozen=True)
class QueryHit:
    """A matching record, with the files that matched when searching file names."""

    record: Record
    files: tuple[tuple[int, str], ...] = field(default=())


def build_name_matcher(text: str, mode: str) -> Callable[[str], bool]:
    """Return a predicate implementing one of the name matching modes."""
    if mode not in MATCH_MODES:
        raise ValueError(f"Unknown match mode {mode!r}; expected one of {', '.join(MATCH_MODES)}.")
    if mode == "regexp":
        try:
            pattern = re.compile(text)
        except re.error as error:
            raise ValueError(f"Invalid regular expression {text!r}: {error}") from error
        return lambda name: pattern.search(name) is not None

    words = text.lower().split()
    if mode == "unordered":
        return lambda name: all(word in name.lower() for word in words)
    if mode == "any":
        return lambda name: not words or any(word in name.lower() for word in words)

    def ordered(name: str) -> bool:
        lowered = name.lower()
        position = 0
        for word in words:
            found = lowered.find(word, position)
            if found == -1:
                return False
            position = found + len(word)
        return True

    return ordered


def in_ranges(record: Record, options: QueryOptions) -> bool:
    """Return True when a record passes every numeric and date filter."""
    size_mb = record.size // MIB
    return (
        _between(size_mb, options.min_size_mb, options.max_size_mb)
        and _between(record.hits, options.min_hits, options.max_hits)
        and _between(record.files, options.min_files, options.max_files)
        and options.min_first_seen <= record.first_seen <= options.max_first_seen
        and options.min_last_seen <= record.last_seen <= options.max_last_seen
    )


def filter_concurrently(
    items: Iterable[T],
    predicate: Callable[[T], bool],
    workers: int,
) -> list[T]:
    """Apply predicate with a fixed worker pool; result order is unspecified."""
    work: queue.Queue[tuple[T] | None] = queue.Queue(maxsize=workers * QUEUE_SIZE_PER_WORKER)
    results: list[T] = []
    lock = threading.Lock()

    def worker_loop() -> None:
        while True:
            entry = work.get()
            if entry is None:
                return
            if predicate(entry[0]):
                with lock:
                    results.append(entry[0])

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(worker_loop) for _ in range(workers)]
        try:
            for item in items:
                if not _put_while_alive(work, (item,), futures):
                    break
        finally:
            for _ in futures:
                if not _put_while_alive(work, None, futures):
                    break
        for future in futures:
            future.result()
    return results


def _put_while_alive(work: queue.Queue, entry: object, futures: list[Future[None]]) -> bool:
    while True:
        try:
            work.put(entry, timeout=0.1)
            return True
        except queue.Full:
            if all(future.done() for future in futures):
                return False


def read_records(path: Path) -> Iterator[Record]:
    """Stream decoded records from torrents.tsv."""
    with path.open("r", encoding="utf-8", newline="\n") as handle:
        for line in handle:
            if line.strip():
                yield decode_record(line)


def read_file_listings(path: Path) -> Iterator[FileListing]:
    """Stream blocks from files.tsv."""
    if not path.exists():
        return
    hash_hex: str | None = None
    entries: list[tuple[int, str]] = []
    with path.open("r", encoding="utf-8", newline="\n") as handle:
        for raw_line in handle:
            line = raw_line.rstrip("\n")
            if line == "---":
                if hash_hex is None:
                    raise MalformedRecordError("files.tsv block without a hash header")
                yield FileListing(hash=hash_hex, entries=tuple(entries))
                hash_hex, entries = None, []
            elif line.startswith("hash: "):
                hash_hex = line[len("hash: ") :].strip()
            elif line:
                length, _, name = line.partition("\t")
                if not length.isdigit():
                    raise MalformedRecordError(f"Invalid files.tsv line: {line[:80]!r}")
                entries.append((int(length), name))


def sort_hits(hits: list[QueryHit], sort_key: str) -> list[QueryHit]:
    """Order hits ascending by the requested key, ties broken by hash."""
    if sort_key not in SORT_KEYS:
        raise ValueError(f"Unknown sort key {sort_key!r}; expected one of {', '.join(SORT_KEYS)}.")
    if sort_key == "name":
        return sorted(hits, key=lambda hit: (hit.record.name.lower(), hit.record.hash))
    return sorted(hits, key=lambda hit: (getattr(hit.record, sort_key), hit.record.hash))


def search_store(db_dir: Path, options: QueryOptions, workers: int = 32) -> list[QueryHit]:
    """Search the store and return sorted hits."""
    if workers < 1:
        raise ValueError("workers must be a positive integer.")
    matcher = build_name_matcher(options.text, options.mode)

    file_matches: dict[str, tuple[tuple[int, str], ...]] = {}
    if options.search_files:
        listings = filter_concurrently(
            read_file_listings(db_dir / "files.tsv"),
            lambda listing: any(matcher(name) for _, name in listing.entries),
            workers,
        )
        for listing in listings:
            file_matches[listing.hash] = listing.entries

    records = filter_concurrently(
        read_records(db_dir / "torrents.tsv"),
        lambda record: in_ranges(record, options)
        and (record.hash in file_matches or matcher(record.name)),
        workers,
    )
    hits = [QueryHit(record=record, files=file_matches.get(record.hash, ())) for record in records]
    return sort_hits(hits, options.sort_key)


def render_hits(hits: list[QueryHit], out: TextIO) -> None:
    """Write hits as text, sizes in MiB, followed by the result count."""
    for hit in hits:
        record = hit.record
        out.write(
            f"{record.hash}\t{record.size // MIB:6d}\t{record.files:5d}\t"
            f"{record.first_seen}\t{record.last_seen}\t{record.hits:4d}\t{record.name}\n"
        )
        for length, name in hit.files:
            out.write(f"{length // MIB:8d}   {name}\n")
    out.write(f"Results: {len(hits)}\n")


def _between(value: int, low: int, high: int | None) -> bool:
    return value >= low and (high is None or value <= high)
