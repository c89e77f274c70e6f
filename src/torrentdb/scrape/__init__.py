"""Tracker scrape-file dump."""

from .dump import (
    BandStats,
    ScrapeEntry,
    ScrapeSummary,
    ScrapeThresholds,
    dump_scrape,
    parse_scrape,
)

__all__ = [
    "BandStats",
    "ScrapeEntry",
    "ScrapeSummary",
    "ScrapeThresholds",
    "dump_scrape",
    "parse_scrape",
]
