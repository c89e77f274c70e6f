"""Structured JSONL run-event log."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol


@dataclass(slots=True, frozen=True)
class RunEvent:
    """One ingestion event, serialized as a single JSON line."""

    timestamp: str
    run_id: str
    event: str
    identifier: str | None
    ok: bool
    error_code: str | None
    metadata: dict[str, object]


class EventSink(Protocol):
    def append(self, event: RunEvent) -> None: ...


def utc_timestamp() -> str:
    """Return an ISO-8601 UTC timestamp."""
    return datetime.now(tz=UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class JsonlEventLogger:
    """Append-only JSONL event logger and bounded reader."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        """Return on-disk JSONL path."""
        return self._path

    def append(self, event: RunEvent) -> None:
        """Append an event as one JSON object per line."""
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(asdict(event), sort_keys=True))
            handle.write("\n")

    def read(
        self,
        since: str | None = None,
        limit: int = 50,
        event: str | None = None,
    ) -> list[dict[str, object]]:
        """Read the most recent events, optionally by type and timestamp lower bound."""
        if limit < 1 or not self._path.exists():
            return []
        entries: list[dict[str, object]] = []
        with self._path.open("r", encoding="utf-8") as handle:
            for line in handle:
                if not line.strip():
                    continue
                try:
                    record = json.loads(line)
                except json.JSONDecodeError:
                    continue
                if event is not None and record.get("event") != event:
                    continue
                timestamp = record.get("timestamp")
                if since is not None and (not isinstance(timestamp, str) or timestamp < since):
                    continue
                entries.append(record)
        return entries[-limit:]


class NullEventLogger:
    """Event sink used when the JSONL log is disabled."""

    def append(self, event: RunEvent) -> None:
        """Discard the event."""
