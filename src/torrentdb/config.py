"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

CONFIG_FILE_NAME = "torrentdb.toml"
DEFAULT_TORRENT_GLOB = "*/*/*.torrent"
DEFAULT_QUERY_WORKERS = 32
MAX_QUERY_WORKERS_CAP = 256


@dataclass(slots=True, frozen=True)
class IngestConfig:
    """Input discovery settings."""

    torrent_dir: Path | None
    torrent_glob: str


@dataclass(slots=True, frozen=True)
class QueryConfig:
    """Read-only query settings."""

    workers: int


@dataclass(slots=True, frozen=True)
class LoggingConfig:
    """Run event log toggles."""

    events_enabled: bool


@dataclass(slots=True, frozen=True)
class StoreConfig:
    """Fully merged configuration for one store directory."""

    db_dir: Path
    ingest: IngestConfig
    query: QueryConfig
    logging: LoggingConfig

    @property
    def torrents_path(self) -> Path:
        return self.db_dir / "torrents.tsv"

    @property
    def files_path(self) -> Path:
        return self.db_dir / "files.tsv"

    @property
    def stats_path(self) -> Path:
        return self.db_dir / "stats.txt"

    @property
    def error_log_path(self) -> Path:
        return self.db_dir / "error.log"

    @property
    def events_path(self) -> Path:
        return self.db_dir / "events.jsonl"

    def to_public_dict(self) -> dict[str, object]:
        """Return a serializable config snapshot."""
        return {
            "db_dir": str(self.db_dir),
            "ingest": {
                "torrent_dir": str(self.ingest.torrent_dir) if self.ingest.torrent_dir else None,
                "torrent_glob": self.ingest.torrent_glob,
            },
            "query": {"workers": self.query.workers},
            "logging": {"events_enabled": self.logging.events_enabled},
        }


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional startup overrides applied at highest precedence."""

    torrent_dir: Path | None = None
    torrent_glob: str | None = None
    workers: int | None = None
    events_enabled: bool | None = None


def default_config(db_dir: Path) -> StoreConfig:
    """Build default config for a given store directory."""
    return StoreConfig(
        db_dir=db_dir.resolve(),
        ingest=IngestConfig(torrent_dir=None, torrent_glob=DEFAULT_TORRENT_GLOB),
        query=QueryConfig(workers=DEFAULT_QUERY_WORKERS),
        logging=LoggingConfig(events_enabled=True),
    )


def load_store_config_file(db_dir: Path) -> dict[str, object]:
    """Load optional torrentdb.toml from the store directory."""
    config_path = db_dir / CONFIG_FILE_NAME
    if not config_path.exists():
        return {}
    with config_path.open("rb") as handle:
        payload = tomllib.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"{CONFIG_FILE_NAME} must contain a top-level table.")
    return payload


def _get_table(payload: dict[str, object], key: str) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a table.")
    return value


def merge_config(
    base: StoreConfig, file_payload: dict[str, object], overrides: CliOverrides
) -> StoreConfig:
    """Merge defaults, store config file, then CLI overrides."""
    ingest_payload = _get_table(file_payload, "ingest")
    query_payload = _get_table(file_payload, "query")
    logging_payload = _get_table(file_payload, "logging")

    torrent_dir = base.ingest.torrent_dir
    if "torrent_dir" in ingest_payload:
        raw_dir = ingest_payload["torrent_dir"]
        if not isinstance(raw_dir, str) or not raw_dir:
            raise ValueError("Config field 'ingest.torrent_dir' must be a non-empty string.")
        torrent_dir = (base.db_dir / raw_dir).resolve()

    torrent_glob = base.ingest.torrent_glob
    if "torrent_glob" in ingest_payload:
        torrent_glob = _glob_pattern(ingest_payload["torrent_glob"], "ingest.torrent_glob")

    workers = _optional_positive_int_with_cap(
        query_payload.get("workers"),
        "query.workers",
        base.query.workers,
        MAX_QUERY_WORKERS_CAP,
    )

    events_enabled = base.logging.events_enabled
    if "events_enabled" in logging_payload:
        raw_enabled = logging_payload["events_enabled"]
        if not isinstance(raw_enabled, bool):
            raise ValueError("Config field 'logging.events_enabled' must be a boolean.")
        events_enabled = raw_enabled

    merged = StoreConfig(
        db_dir=base.db_dir,
        ingest=IngestConfig(torrent_dir=torrent_dir, torrent_glob=torrent_glob),
        query=QueryConfig(workers=workers),
        logging=LoggingConfig(events_enabled=events_enabled),
    )
    return apply_cli_overrides(merged, overrides)


def apply_cli_overrides(config: StoreConfig, overrides: CliOverrides) -> StoreConfig:
    """Apply startup overrides at highest precedence."""
    workers = _optional_positive_int_with_cap(
        overrides.workers,
        "overrides.workers",
        config.query.workers,
        MAX_QUERY_WORKERS_CAP,
    )
    torrent_glob = config.ingest.torrent_glob
    if overrides.torrent_glob is not None:
        torrent_glob = _glob_pattern(overrides.torrent_glob, "overrides.torrent_glob")
    torrent_dir = config.ingest.torrent_dir
    if overrides.torrent_dir is not None:
        torrent_dir = overrides.torrent_dir.resolve()
    return StoreConfig(
        db_dir=config.db_dir,
        ingest=IngestConfig(torrent_dir=torrent_dir, torrent_glob=torrent_glob),
        query=QueryConfig(workers=workers),
        logging=LoggingConfig(
            events_enabled=(
                overrides.events_enabled
                if overrides.events_enabled is not None
                else config.logging.events_enabled
            )
        ),
    )


def load_effective_config(db_dir: Path, overrides: CliOverrides | None = None) -> StoreConfig:
    """Load effective config using merge order defaults -> torrentdb.toml -> overrides."""
    resolved = db_dir.resolve()
    base = default_config(resolved)
    payload = load_store_config_file(resolved)
    return merge_config(base, payload, overrides or CliOverrides())


def _glob_pattern(value: object, name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Config field '{name}' must be a non-empty string.")
    if value.startswith("/") or ".." in value.split("/"):
        raise ValueError(f"Config field '{name}' must be a relative pattern.")
    return value


def _optional_positive_int_with_cap(
    value: object,
    name: str,
    default: int,
    cap: int | None,
) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"Config field '{name}' must be a positive integer.")
    if cap is not None and value > cap:
        raise ValueError(f"Config field '{name}' must be <= {cap}.")
    return value
