"""Fetch the game catalog from the command line.

Usage:
    python -m gamefeed [--provider ID | --all | --health]
                       [--headful] [--no-cache] [-v]

Prints the JSON response. ``--health`` exits 1 when the durable cache
tier is unhealthy.
"""

import argparse
import asyncio
import json
import logging
import sys

from gamefeed._cache import CacheManager
from gamefeed._config import Settings
from gamefeed._pipeline import fetch_catalog, scrape_providers
from gamefeed._providers import get_provider, list_providers
from gamefeed._service import CatalogService, health_check, to_response


async def _run(args, settings: Settings) -> int:
    if args.health:
        cache = CacheManager(settings.redis_url, settings.cache_ttl)
        try:
            result = await health_check(cache, settings)
        finally:
            await cache.close()
        print(json.dumps(result, indent=2))
        return 0 if result["status"] == "healthy" else 1

    if args.all:
        outcomes = await scrape_providers(list_providers(), settings)
        result = {pid: to_response(o) for pid, o in outcomes.items()}
    elif args.no_cache:
        provider = get_provider(args.provider, settings.default_provider)
        result = to_response(await fetch_catalog(provider, settings))
    else:
        service = CatalogService(settings)
        try:
            result = await service.get_games(args.provider)
        finally:
            await service.close()

    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog="gamefeed", description="Game catalog scraper"
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--provider", help="Provider id (default: configured default)",
    )
    mode.add_argument(
        "--all", action="store_true",
        help="Scrape every provider in one session (top N by RTP)",
    )
    mode.add_argument(
        "--health", action="store_true", help="Check the cache store",
    )
    parser.add_argument(
        "--headful", action="store_true", help="Show the browser window",
    )
    parser.add_argument(
        "--no-cache", action="store_true",
        help="Scrape directly, bypassing both cache tiers",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Debug logging",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        level=logging.DEBUG if args.verbose else logging.INFO,
    )

    try:
        settings = Settings.from_env()
    except ValueError as e:
        parser.error(str(e))
    if args.headful:
        settings = settings.with_overrides(headless=False)

    return asyncio.run(_run(args, settings))


if __name__ == "__main__":
    sys.exit(main())
