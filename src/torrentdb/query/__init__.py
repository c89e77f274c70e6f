"""Read-only store queries."""

from .search import (
    MATCH_MODES,
    SORT_KEYS,
    FileListing,
    QueryHit,
    QueryOptions,
    build_name_matcher,
    filter_concurrently,
    in_ranges,
    read_file_listings,
    read_records,
    render_hits,
    search_store,
    sort_hits,
)

__all__ = [
    "FileListing",
    "MATCH_MODES",
    "QueryHit",
    "QueryOptions",
    "SORT_KEYS",
    "build_name_matcher",
    "filter_concurrently",
    "in_ranges",
    "read_file_listings",
    "read_records",
    "render_hits",
    "search_store",
    "sort_hits",
]
