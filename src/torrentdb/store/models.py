"""Typed models for store state."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class Record:
    """One catalogued torrent, persisted as a single store line."""

    hash: str
    size: int
    files: int
    first_seen: str
    last_seen: str
    hits: int
    name: str


@dataclass(slots=True, frozen=True)
class RunStats:
    """Counters for one ingestion run."""

    scan_time: int
    last_scan_time: int
    files_seen: int = 0
    skipped: int = 0
    duplicates: int = 0
    new: int = 0
    updated: int = 0
    rejected: int = 0
    pre_existing_total: int = 0

    @property
    def processed(self) -> int:
        """Return the number of torrents that were appended or updated."""
        return self.new + self.updated

    @property
    def total(self) -> int:
        """Return the store size after the run."""
        return self.pre_existing_total + self.new
