"""CLI entry point: fetch URLs one interval apart."""
from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Sequence

import httpx

from .client import PacedClient
from .config import QueueConfig, load_queue_config

LOGGER = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fetch URLs through a paced queue")
    parser.add_argument("urls", nargs="+", help="URLs to request, in order")
    parser.add_argument(
        "--config",
        type=Path,
        help="YAML file with interval_seconds and scheduler options",
    )
    parser.add_argument(
        "--interval",
        type=float,
        help="Seconds between requests (overrides the config file)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser.parse_args(argv)


async def run(
    config: QueueConfig,
    urls: List[str],
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> int:
    """Request every URL through one scheduler; return the process exit code."""

    scheduler = config.create_scheduler()
    failures = 0
    async with PacedClient(scheduler, transport=transport) as client:
        handles = [client.get(url) for url in urls]
        for url, handle in zip(urls, handles):
            try:
                response = await handle
            except httpx.HTTPError as exc:
                failures += 1
                LOGGER.error("%s failed: %s", url, exc)
                continue
            LOGGER.info("%s -> %s (%d bytes)", url, response.status_code, len(response.content))
        scheduler.pause()
    return 1 if failures else 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    _configure_logging(args.verbose)
    config = load_queue_config(args.config) if args.config else QueueConfig()
    if args.interval is not None:
        config = QueueConfig(interval_seconds=args.interval, options=config.options)
    return asyncio.run(run(config, args.urls))


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
