"""
Command-line interface for the crawler.
"""
from __future__ import annotations

import argparse
import asyncio
import json
import re
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence, Tuple
from urllib.parse import urlparse

from linkmap.config import Config
from linkmap.core import CrawlOptions, CrawlStats, PageFetcher, PageRecord
from linkmap.logging_config import setup_logging
from linkmap.scheduler import FrontierScheduler
from linkmap.urls import InvalidURL, canonicalize


def print_summary(stats: CrawlStats) -> None:
    """Print crawl summary to stderr."""
    sys.stderr.write("=" * 50 + "\n")
    sys.stderr.write("CRAWL SUMMARY\n")
    sys.stderr.write("=" * 50 + "\n\n")

    sys.stderr.write(f"Total pages recorded:   {stats.pages_recorded}\n")
    sys.stderr.write(f"Batches dispatched:     {stats.batches}\n")
    sys.stderr.write(f"Peak concurrent:        {stats.peak_in_flight}\n")
    sys.stderr.write(f"Duplicates skipped:     {stats.duplicates_skipped}\n")
    sys.stderr.write(f"Invalid URLs dropped:   {stats.invalid_urls}\n\n")

    if stats.failed_urls:
        sys.stderr.write(f"Failed fetches ({stats.fetch_failures}):\n")
        for url in stats.failed_urls:
            sys.stderr.write(f"  {url}\n")
    else:
        sys.stderr.write("No fetch failures.\n")

    sys.stderr.write("\n")


def generate_output_path(start_url: str) -> Path:
    """Generate output path: crawls/{host}_{datetime}.json, port included when explicit."""
    try:
        host = urlparse(canonicalize(start_url)).netloc
    except InvalidURL:
        host = "unknown"
    host_safe = re.sub(r"[^A-Za-z0-9]+", "_", host).strip("_")
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

    crawls_dir = Path("crawls")
    crawls_dir.mkdir(exist_ok=True)

    return crawls_dir / f"{host_safe}_{timestamp}.json"


async def run_crawl(
    start_url: str,
    options: CrawlOptions,
    timeout_s: float,
    user_agent: str,
) -> Tuple[List[PageRecord], CrawlStats]:
    """Crawl with a real page fetcher and return results with statistics."""
    with PageFetcher(timeout_s=timeout_s, user_agent=user_agent, pool_size=options.max_concurrency) as fetcher:
        scheduler = FrontierScheduler(start_url, fetcher, options)
        results = await scheduler.run()
    return results, scheduler.stats


def build_parser(config: Config) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Crawl every page on the start URL's host and output the links found on each page as JSON."
    )
    parser.add_argument("start_url", help="Start URL (e.g. https://example.com)")
    parser.add_argument(
        "--max-concurrency", type=int, default=config.max_concurrency,
        help=f"Maximum pages fetched at once (default: {config.max_concurrency})",
    )
    parser.add_argument(
        "--rate-limit-ms", type=int, default=config.rate_limit_ms,
        help=f"Pause between fetch batches in milliseconds (default: {config.rate_limit_ms})",
    )
    parser.add_argument("--max-pages", type=int, help="Stop after this many pages (default: unlimited)")
    parser.add_argument(
        "--timeout", type=float, default=config.timeout,
        help=f"Request timeout in seconds (default: {config.timeout:g})",
    )
    parser.add_argument("--user-agent", default=config.user_agent, help="User-Agent header")
    parser.add_argument("--out", help="Output file path, or '-' for stdout (default: auto-generated in crawls/)")
    parser.add_argument("--pretty", action="store_true", help="Pretty-print JSON")
    parser.add_argument("--verbose", action="store_true", help="Show summary when done")
    parser.add_argument("--log-level", default=config.log_level, help=f"Log level (default: {config.log_level})")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the crawler CLI."""
    config = Config.from_env()
    parser = build_parser(config)
    args = parser.parse_args(argv)

    setup_logging(args.log_level)

    try:
        options = CrawlOptions(
            max_concurrency=args.max_concurrency,
            rate_limit_ms=args.rate_limit_ms,
            max_pages=args.max_pages,
        )
    except ValueError as e:
        parser.error(str(e))

    try:
        results, stats = asyncio.run(run_crawl(args.start_url, options, args.timeout, args.user_agent))
    except InvalidURL as e:
        sys.stderr.write(f"{e}\n")
        return 2

    if args.verbose:
        print_summary(stats)

    payload = [r.to_dict() for r in results]
    json_text = json.dumps(payload, ensure_ascii=False, indent=2 if args.pretty else None)

    if args.out == "-":
        print(json_text)
    else:
        output_path = Path(args.out) if args.out else generate_output_path(args.start_url)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(json_text, encoding="utf-8")
        if args.verbose:
            sys.stderr.write(f"Results written to: {output_path}\n")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
