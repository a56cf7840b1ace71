"""Command-line entry point for the Hubble birthday image scraper."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Sequence

from .config import CrawlConfig
from .crawler import run_download
from .enrich import run_enrichment
from .loaders import load_records
from .models import RunStats

logger = logging.getLogger("hubble_birthday.cli")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_RECORD_FAILURES = 2


def _add_common_arguments(parser: argparse.ArgumentParser, defaults: CrawlConfig) -> None:
    parser.add_argument(
        "--output",
        default=defaults.output_root,
        type=Path,
        help="Directory holding one folder per date key",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=defaults.navigation_timeout,
        help="Navigation timeout in seconds",
    )
    parser.add_argument(
        "--only",
        action="append",
        metavar="MM-DD",
        help="Restrict the run to this date key (repeatable)",
    )
    parser.add_argument(
        "--user-agent",
        default=defaults.user_agent,
        help="User-Agent header for the browser and file downloads",
    )
    parser.add_argument(
        "--headed",
        action="store_true",
        help="Show the browser window instead of running headless",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 2 when any record fails",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    defaults = CrawlConfig()
    parser = argparse.ArgumentParser(
        description="Download Hubble birthday images and enrich their metadata.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    download_parser = subparsers.add_parser(
        "download", help="Fetch images and metadata for every row of the input table"
    )
    download_parser.add_argument(
        "--input",
        default=defaults.input_csv,
        type=Path,
        help="CSV with Date, URL, Name, Caption, Year and Image columns",
    )
    download_parser.add_argument(
        "--wait",
        type=float,
        default=defaults.wait_after_load,
        help="Seconds to wait after network idle before reading HTML",
    )
    download_parser.add_argument(
        "--delay",
        type=float,
        default=defaults.record_delay,
        help="Seconds to pause between records",
    )
    download_parser.add_argument(
        "--max-attempts",
        type=int,
        default=defaults.max_attempts,
        help="Attempts per file download before giving up",
    )
    download_parser.add_argument(
        "--backoff",
        type=float,
        default=defaults.retry_backoff,
        help="Base backoff in seconds; attempt N waits N times this",
    )
    download_parser.add_argument(
        "--download-timeout",
        type=float,
        default=defaults.download_timeout,
        help="Per-request timeout in seconds for file downloads",
    )
    _add_common_arguments(download_parser, defaults)

    enrich_parser = subparsers.add_parser(
        "enrich", help="Scrape narrative content for already downloaded records"
    )
    enrich_parser.add_argument(
        "--wait",
        type=float,
        default=defaults.enrich_wait_after_load,
        help="Seconds to wait after network idle before reading HTML",
    )
    enrich_parser.add_argument(
        "--delay",
        type=float,
        default=defaults.enrich_delay,
        help="Seconds to pause between records",
    )
    _add_common_arguments(enrich_parser, defaults)

    return parser.parse_args(list(sys.argv[1:] if argv is None else argv))


def build_config(args: argparse.Namespace) -> CrawlConfig:
    config = CrawlConfig(
        output_root=Path(args.output).resolve(),
        navigation_timeout=args.timeout,
        headless=not args.headed,
        user_agent=args.user_agent,
    )
    if args.command == "download":
        config.input_csv = args.input
        config.wait_after_load = args.wait
        config.record_delay = args.delay
        config.max_attempts = args.max_attempts
        config.retry_backoff = args.backoff
        config.download_timeout = args.download_timeout
    else:
        config.enrich_wait_after_load = args.wait
        config.enrich_delay = args.delay
    return config


def _exit_code(stats: RunStats, strict: bool) -> int:
    if strict and stats.failed:
        return EXIT_RECORD_FAILURES
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    config = build_config(args)

    try:
        if args.command == "download":
            records = load_records(config.input_csv)
            stats = asyncio.run(run_download(records, config, only=args.only))
        else:
            stats = asyncio.run(run_enrichment(config, only=args.only))
    except Exception:  # pylint: disable=broad-except
        logger.exception("%s run aborted", args.command.capitalize())
        return EXIT_ERROR
    return _exit_code(stats, args.strict)


if __name__ == "__main__":
    sys.exit(main())
