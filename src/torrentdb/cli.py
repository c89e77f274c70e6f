"""Command-line entrypoint."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import TextIO

from torrentdb.config import CliOverrides, load_effective_config
from torrentdb.ingest import run_ingest
from torrentdb.metainfo import Info, ParseError, load_torrent
from torrentdb.query import MATCH_MODES, SORT_KEYS, QueryOptions, render_hits, search_store
from torrentdb.scrape import ScrapeThresholds, dump_scrape
from torrentdb.security import ValidationError, printable_text
from torrentdb.store import StoreError


def build_arg_parser() -> argparse.ArgumentParser:
    """Build the argument parser for all subcommands."""
    parser = argparse.ArgumentParser(prog="torrentdb")
    commands = parser.add_subparsers(dest="command", required=True)

    ingest = commands.add_parser("ingest", help="add new torrent files to the store")
    ingest.add_argument("-d", "--db-dir", required=True)
    ingest.add_argument("-t", "--torrent-dir", required=False, default=None)
    ingest.add_argument("--torrent-glob", required=False, default=None)
    ingest.add_argument("--no-events", action="store_true")

    query = commands.add_parser("query", help="search the store")
    query.add_argument("db_dir")
    query.add_argument("-n", "--name", default="")
    query.add_argument("--mode", choices=MATCH_MODES, default="ordered")
    query.add_argument("-N", "--search-files", action="store_true")
    query.add_argument("-s", "--min-size", type=int, default=0, help="MiB")
    query.add_argument("-S", "--max-size", type=int, default=None, help="MiB")
    query.add_argument("-p", "--min-hits", type=int, default=0)
    query.add_argument("-P", "--max-hits", type=int, default=None)
    query.add_argument("-f", "--min-files", type=int, default=0)
    query.add_argument("-F", "--max-files", type=int, default=None)
    query.add_argument("-d", "--min-first-seen", default="1970-01-01")
    query.add_argument("-D", "--max-first-seen", default="2100-01-01")
    query.add_argument("-l", "--min-last-seen", default="1970-01-01")
    query.add_argument("-L", "--max-last-seen", default="2100-01-01")
    query.add_argument("--sort", choices=SORT_KEYS, default="hits")
    query.add_argument("--workers", type=int, default=None)

    parse = commands.add_parser("parse", help="print the decoded content of one torrent file")
    parse.add_argument("torrent")
    parse.add_argument("-v", "--verbose", action="store_true")

    scrape = commands.add_parser("scrape", help="decode a tracker scrape file")
    scrape.add_argument("scrape_file")
    scrape.add_argument("-s", "--min-seeders", type=int, default=0)
    scrape.add_argument("-d", "--min-downloaded", type=int, default=0)
    scrape.add_argument("-l", "--min-leechers", type=int, default=0)
    scrape.add_argument("-t", "--terse", action="store_true")
    return parser


def main(
    argv: list[str] | None = None,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> int:
    """Entrypoint for the torrentdb process; returns the exit status."""
    stdout = out or sys.stdout
    stderr = err or sys.stderr
    args = build_arg_parser().parse_args(argv)
    try:
        if args.command == "ingest":
            return _run_ingest(args, stdout, stderr)
        if args.command == "query":
            return _run_query(args, stdout)
        if args.command == "parse":
            print_info(load_torrent(args.torrent), stdout, verbose=args.verbose)
            return 0
        return _run_scrape(args, stdout)
    except (ParseError, ValidationError) as error:
        stderr.write(f"error: {error.code}: {error.message}\n")
    except (StoreError, OSError, ValueError) as error:
        stderr.write(f"error: {error}\n")
    return 1


def _run_ingest(args: argparse.Namespace, stdout: TextIO, stderr: TextIO) -> int:
    overrides = CliOverrides(
        torrent_dir=Path(args.torrent_dir) if args.torrent_dir is not None else None,
        torrent_glob=args.torrent_glob,
        events_enabled=False if args.no_events else None,
    )
    config = load_effective_config(Path(args.db_dir), overrides)
    if config.ingest.torrent_dir is None:
        stderr.write("error: no torrent directory; pass --torrent-dir or set ingest.torrent_dir\n")
        return 2
    stats = run_ingest(config, config.ingest.torrent_dir, stdout)
    stdout.write(
        f"* new {stats.new}, updated {stats.updated}, rejected {stats.rejected}, "
        f"skipped {stats.skipped}, total {stats.total}\n"
    )
    return 0


def _run_query(args: argparse.Namespace, stdout: TextIO) -> int:
    config = load_effective_config(Path(args.db_dir), CliOverrides(workers=args.workers))
    options = QueryOptions(
        text=args.name,
        mode=args.mode,
        search_files=args.search_files,
        min_size_mb=args.min_size,
        max_size_mb=args.max_size,
        min_hits=args.min_hits,
        max_hits=args.max_hits,
        min_files=args.min_files,
        max_files=args.max_files,
        min_first_seen=args.min_first_seen,
        max_first_seen=args.max_first_seen,
        min_last_seen=args.min_last_seen,
        max_last_seen=args.max_last_seen,
        sort_key=args.sort,
    )
    hits = search_store(config.db_dir, options, workers=config.query.workers)
    render_hits(hits, stdout)
    return 0


def _run_scrape(args: argparse.Namespace, stdout: TextIO) -> int:
    summary = dump_scrape(
        Path(args.scrape_file),
        ScrapeThresholds(
            seeders=args.min_seeders,
            downloaded=args.min_downloaded,
            leechers=args.min_leechers,
        ),
        terse=args.terse,
    )
    stdout.write(summary.summary_row() + "\n")
    return 0


def print_info(info: Info, out: TextIO, verbose: bool = False) -> None:
    """Write a human-readable summary of a decoded torrent."""
    out.write(
        f"\nName\t\t{printable_text(info.name)}\n"
        f"Hash\t\t{info.hash_hex}\n"
        f"Files\t\t{info.file_count}\n"
        f"Size(MB)\t{info.length // (1024 * 1024)}\n"
    )
    if verbose:
        out.write(f"NumPieces\t{info.num_pieces}\nPieceSize\t{info.piece_length}\n\n")
        for number, entry in enumerate(info.files):
            out.write(f"File{number}\t\t{printable_text(entry.path)}\n")
            out.write(f"Size{number}(MB)\t{entry.length // (1024 * 1024)}\n")
    out.write("\n")


if __name__ == "__main__":
    raise SystemExit(main())
