"""Decode a tracker scrape response into a text listing plus band statistics."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from torrentdb.metainfo import BencodeError, ParseError, decode

ZERO_HASH = "0" * 40
METRICS = ("seeders", "downloaded", "leechers")
BAND_LABELS = ("0", "1-9", "10-99", "100-999", "1000-9999", "10000+")
HEADER = "info hash\t\t\t\t\t seeders      downloaded\tleechers\n"


@dataclass(slots=True, frozen=True)
class ScrapeEntry:
    """Swarm counters reported for one info-hash."""

    hash: str
    seeders: int
    downloaded: int
    leechers: int


@dataclass(slots=True, frozen=True)
class ScrapeThresholds:
    """Minimum counters an entry needs to be written."""

    seeders: int = 0
    downloaded: int = 0
    leechers: int = 0


@dataclass(slots=True)
class BandStats:
    """How many entries fall in each decimal band, and the metric sum."""

    bands: list[int] = field(default_factory=lambda: [0] * len(BAND_LABELS))
    total: int = 0

    def add(self, value: int) -> None:
        self.total += value
        if value <= 0:
            self.bands[0] += 1
            return
        self.bands[min(len(str(value)), len(BAND_LABELS) - 1)] += 1


@dataclass(slots=True)
class ScrapeSummary:
    """Result of one dump: written entry count and per-metric statistics."""

    output_path: Path
    entries: int = 0
    written: int = 0
    stats: dict[str, BandStats] = field(
        default_factory=lambda: {metric: BandStats() for metric in METRICS}
    )

    def summary_row(self, now: datetime | None = None) -> str:
        """Return a tab-separated row: date, bands and sum per metric, entry count."""
        stamp = (now or datetime.now(tz=UTC)).strftime("%Y-%m-%d %H:%M")
        columns = [stamp]
        for metric in METRICS:
            band = self.stats[metric]
            columns.extend(str(count) for count in band.bands)
            columns.append(str(band.total))
        columns.append(str(self.entries))
        return "\t".join(columns)


def parse_scrape(data: bytes) -> list[ScrapeEntry]:
    """Decode a scrape response body into entries ordered by hash."""
    try:
        payload = decode(data)
    except BencodeError as error:
        raise ParseError(
            code="MALFORMED_CONTAINER", message=f"Invalid scrape file: {error}"
        ) from error
    if not isinstance(payload, dict) or not isinstance(payload.get(b"files"), dict):
        raise ParseError(code="MALFORMED_CONTAINER", message="Scrape file has no files dictionary.")

    entries: list[ScrapeEntry] = []
    for raw_hash, item in payload[b"files"].items():
        if not isinstance(item, dict):
            raise ParseError(
                code="MALFORMED_CONTAINER",
                message=f"Scrape entry for {raw_hash.hex()} is not a dictionary.",
            )
        entries.append(
            ScrapeEntry(
                hash=raw_hash.hex(),
                seeders=_counter(item, b"complete"),
                downloaded=_counter(item, b"downloaded"),
                leechers=_counter(item, b"incomplete"),
            )
        )
    entries.sort(key=lambda entry: entry.hash)
    return entries


def dump_scrape(
    input_path: Path,
    thresholds: ScrapeThresholds | None = None,
    terse: bool = False,
) -> ScrapeSummary:
    """Write '<input>.decoded.txt' and return band statistics over all entries."""
    limits = thresholds or ScrapeThresholds()
    entries = parse_scrape(input_path.read_bytes())
    summary = ScrapeSummary(output_path=input_path.with_name(input_path.name + ".decoded.txt"))
    with summary.output_path.open("w", encoding="utf-8") as handle:
        if not terse:
            handle.write(HEADER)
        for entry in entries:
            summary.entries += 1
            summary.stats["seeders"].add(entry.seeders)
            summary.stats["downloaded"].add(entry.downloaded)
            summary.stats["leechers"].add(entry.leechers)
            if (
                entry.seeders < limits.seeders
                or entry.downloaded < limits.downloaded
                or entry.leechers < limits.leechers
                or entry.hash == ZERO_HASH
            ):
                continue
            summary.written += 1
            if terse:
                handle.write(f"{entry.hash}\n")
            else:
                handle.write(
                    f"{entry.hash}\t{entry.seeders:8d}\t"
                    f"{entry.downloaded:8d}\t{entry.leechers:8d}\n"
                )
    return summary


def _counter(item: dict, key: bytes) -> int:
    value = item.get(key, 0)
    if not isinstance(value, int):
        raise ParseError(
            code="MALFORMED_CONTAINER",
            message=f"Scrape counter '{key.decode()}' must be an integer.",
        )
    return value
