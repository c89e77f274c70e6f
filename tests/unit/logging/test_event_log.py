from __future__ import annotations

import json
from pathlib import Path

from torrentdb.logging import JsonlEventLogger, NullEventLogger, RunEvent, utc_timestamp


def _event(event: str, timestamp: str, identifier: str | None = None) -> RunEvent:
    return RunEvent(
        timestamp=timestamp,
        run_id="run-1",
        event=event,
        identifier=identifier,
        ok=event != "file_rejected",
        error_code="ZERO_PIECES" if event == "file_rejected" else None,
        metadata={},
    )


def test_event_schema_is_one_json_object_per_line(tmp_path: Path) -> None:
    logger = JsonlEventLogger(tmp_path / "logs" / "events.jsonl")
    logger.append(_event("file_rejected", utc_timestamp(), "a.torrent"))

    lines = logger.path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 1
    record = json.loads(lines[0])
    assert set(record) == {
        "timestamp",
        "run_id",
        "event",
        "identifier",
        "ok",
        "error_code",
        "metadata",
    }
    assert record["ok"] is False
    assert record["error_code"] == "ZERO_PIECES"
    assert record["timestamp"].endswith("Z")


def test_read_filters_and_limits(tmp_path: Path) -> None:
    logger = JsonlEventLogger(tmp_path / "events.jsonl")
    logger.append(_event("run_started", "2024-01-01T00:00:00.000Z"))
    logger.append(_event("file_rejected", "2024-01-01T00:00:01.000Z", "a"))
    logger.append(_event("file_rejected", "2024-01-01T00:00:02.000Z", "b"))
    logger.append(_event("run_finished", "2024-01-01T00:00:03.000Z"))
    with logger.path.open("a", encoding="utf-8") as handle:
        handle.write("not json\n")

    rejected = logger.read(event="file_rejected")
    assert [entry["identifier"] for entry in rejected] == ["a", "b"]
    assert [entry["event"] for entry in logger.read(limit=2)] == ["file_rejected", "run_finished"]
    assert len(logger.read(since="2024-01-01T00:00:02.000Z")) == 2
    assert logger.read(limit=0) == []


def test_null_logger_writes_nothing(tmp_path: Path) -> None:
    NullEventLogger().append(_event("run_started", utc_timestamp()))
    assert list(tmp_path.iterdir()) == []
