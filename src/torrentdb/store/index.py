"""In-memory hash to byte-offset index over torrents.tsv."""

from __future__ import annotations

import bisect
from pathlib import Path

from torrentdb.store.codec import HASH_PATTERN, MalformedRecordError


class SortedIndex:
    """Hashes sorted ascending, each paired with its line's byte offset."""

    def __init__(self, pairs: list[tuple[str, int]] | None = None) -> None:
        ordered = sorted(pairs or [])
        self._hashes = [item[0] for item in ordered]
        self._offsets = [item[1] for item in ordered]

    def __len__(self) -> int:
        return len(self._hashes)

    def __contains__(self, hash_hex: object) -> bool:
        return isinstance(hash_hex, str) and self.offset_of(hash_hex) is not None

    @property
    def hashes(self) -> tuple[str, ...]:
        """Return the indexed hashes in sorted order."""
        return tuple(self._hashes)

    def position(self, hash_hex: str) -> int:
        """Return the binary-search insertion point for a hash."""
        return bisect.bisect_left(self._hashes, hash_hex)

    def offset_of(self, hash_hex: str) -> int | None:
        """Return the byte offset of a stored hash, or None when absent."""
        position = self.position(hash_hex)
        if position < len(self._hashes) and self._hashes[position] == hash_hex:
            return self._offsets[position]
        return None


def build_sorted_index(path: Path) -> SortedIndex:
    """Scan the store once and index every line by hash."""
    if not path.exists():
        return SortedIndex()
    pairs: list[tuple[str, int]] = []
    offset = 0
    with path.open("rb") as handle:
        for raw_line in handle:
            hash_field = raw_line.split(b"\t", 1)[0].decode("ascii", errors="replace")
            if not HASH_PATTERN.fullmatch(hash_field):
                raise MalformedRecordError(
                    f"Incorrect hash at byte offset {offset}: {hash_field[:60]!r}"
                )
            pairs.append((hash_field, offset))
            offset += len(raw_line)
            if not raw_line.endswith(b"\n"):
                offset += 1
    return SortedIndex(pairs)
