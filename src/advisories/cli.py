#!/usr/bin/env python3
"""
Fetch GitHub malware advisories and merge them into the local snapshot.

Runs once: fetch the last year of advisories, normalize them, append the
unseen ones to ``data/advisories.json`` and exit.
"""

from __future__ import annotations

import argparse
import logging
from dataclasses import replace

from src.advisories.config import FeedConfig, load_feed_config
from src.advisories.fetcher import AdvisoryFetcher
from src.advisories.merge import AdvisoryMerger, MergeResult
from src.utils.common import add_common_args, setup_logging

logger = logging.getLogger(__name__)


def parse_cli_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Fetch GitHub malware advisories and merge them into a JSON snapshot"
    )
    add_common_args(parser)
    parser.add_argument("--output", help="Snapshot file to read and update")
    parser.add_argument("--max-pages", type=int, help="Upper bound on pages fetched")
    parser.add_argument("--page-delay", type=float, help="Seconds to pause between pages")
    parser.add_argument(
        "--max-retries",
        type=int,
        help="Rate-limited retries allowed per page (0 = retry forever)",
    )
    parser.add_argument(
        "--lookback-years", type=int, help="Only fetch advisories published this recently"
    )
    parser.add_argument("--no-progress", action="store_true", help="Disable the progress bar")
    args = parser.parse_args(argv)
    if args.max_pages is not None and args.max_pages < 1:
        parser.error("--max-pages must be at least 1")
    if args.max_retries is not None and args.max_retries < 0:
        parser.error("--max-retries must not be negative")
    return args


def build_config(args: argparse.Namespace) -> FeedConfig:
    config = load_feed_config(
        output_path=args.output,
        max_pages=args.max_pages,
        page_delay_s=args.page_delay,
        lookback_years=args.lookback_years,
        show_progress=False if args.no_progress else None,
    )
    if args.max_retries is not None:
        retry = replace(config.retry, max_retries=args.max_retries or None)
        config = replace(config, retry=retry)
    return config


def run(config: FeedConfig) -> MergeResult:
    """Fetch, then merge. Nothing is written if the fetch fails."""
    logger.info("Fetching advisories...")
    raw = AdvisoryFetcher(config).fetch_advisories()
    return AdvisoryMerger(config).run(raw)


def main(argv: list[str] | None = None) -> int:
    args = parse_cli_args(argv)
    setup_logging(args.log_level, args.log_file)

    try:
        config = build_config(args)
        result = run(config)
    except KeyboardInterrupt:
        logger.warning("⚠️  Interrupted - nothing was saved")
        return 130
    except Exception as e:
        detail = f"{type(e).__name__}: {e}" if str(e) else type(e).__name__
        logger.error(f"❌ Advisory run failed: {detail}")
        logger.debug("Traceback:", exc_info=True)
        return 1

    logger.info(
        f"✅ Done: {result.added} added, {result.total} advisories in {config.output_path}"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
