"""Catalog request interface: cache tiers in front of the scrape pipeline.

Lookup order for a provider key:

1. process-local tier (swept of expired entries on every request)
2. durable tier (a hit repopulates the local tier)
3. a fresh scrape, coalesced per key, written back to both tiers

Failure responses are cached as well, with the shorter failure TTL, so
a broken upstream is retried at a bounded rate.
"""

import asyncio
import copy
import logging
import time
from typing import Any

from gamefeed._cache import CacheManager, MemoryCache, cache_key
from gamefeed._config import Settings
from gamefeed._models import build_response, utc_timestamp
from gamefeed._pipeline import degrade, fetch_catalog
from gamefeed._providers import ProviderDescriptor, get_provider
from gamefeed._result import Degraded, Ok, ScrapeOutcome

logger = logging.getLogger("gamefeed")

HEALTH_KEY = "health-check"
HEALTH_TTL = 10


def to_response(outcome: ScrapeOutcome) -> dict[str, Any]:
    """Shape a scrape outcome into a catalog response."""
    if isinstance(outcome, Ok):
        return build_response(
            success=True, games=outcome.games, source=outcome.source
        )
    if isinstance(outcome, Degraded):
        return build_response(
            success=False,
            games=outcome.games,
            source=outcome.source,
            error=outcome.reason,
        )
    return build_response(
        success=False, games=[], source="none", error=outcome.reason
    )


def _served_from_cache(payload: dict[str, Any]) -> dict[str, Any]:
    response = copy.deepcopy(payload)
    response["fromCache"] = True
    response["timestamp"] = utc_timestamp()
    return response


class CatalogService:
    """Serves ``get_games()`` requests for the presentation layer.

    Never raises for upstream problems: a failed scrape yields a
    ``success: False`` response carrying fallback games and an error.
    """

    def __init__(
        self,
        settings: Settings,
        cache: CacheManager | None = None,
        local: MemoryCache | None = None,
        scraper=fetch_catalog,
    ):
        self.settings = settings
        self.cache = cache or CacheManager(
            settings.redis_url, settings.cache_ttl
        )
        self.local = (
            local if local is not None else MemoryCache(settings.local_ttl)
        )
        self._scraper = scraper
        self._inflight: dict[str, asyncio.Task] = {}

    def _local_ttl(self, payload: dict[str, Any]) -> float:
        if payload.get("success"):
            return self.settings.local_ttl
        return min(self.settings.local_ttl, self.settings.failure_ttl)

    async def get_games(
        self, provider_id: str | None = None
    ) -> dict[str, Any]:
        """Return the catalog response for *provider_id*.

        Unknown or missing ids resolve to the configured default
        provider.
        """
        provider = get_provider(provider_id, self.settings.default_provider)
        key = cache_key(provider.id, self.settings.default_provider)
        self.local.sweep()

        cached = self.local.get(key)
        if cached is not None:
            logger.info(
                "Local cache HIT: %s (%.0fs old)", key, self.local.age(key)
            )
            return _served_from_cache(cached)

        entry = await self.cache.get_entry(key)
        if entry is not None:
            # Local copy must not outlive the durable entry.
            remaining = entry.ttl - entry.age_seconds()
            ttl = min(self._local_ttl(entry.data), remaining)
            self.local.set(key, entry.data, ttl=ttl)
            return _served_from_cache(entry.data)

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._refresh(provider, key))
            self._inflight[key] = task
            task.add_done_callback(lambda _t: self._inflight.pop(key, None))
        else:
            logger.info("Joining in-flight scrape for %s", key)
        # A cancelled caller must not cancel the scrape others wait on.
        response = await asyncio.shield(task)
        return copy.deepcopy(response)

    async def _refresh(
        self, provider: ProviderDescriptor, key: str
    ) -> dict[str, Any]:
        try:
            outcome = await self._scraper(provider, self.settings)
        except Exception as e:
            logger.warning("Scraper raised for %s", provider.id, exc_info=True)
            outcome = degrade(str(e) or type(e).__name__, self.settings)

        response = to_response(outcome)
        ttl = (
            self.settings.cache_ttl
            if isinstance(outcome, Ok)
            else self.settings.failure_ttl
        )
        await self.cache.set(key, response, ttl=ttl, provider=provider.id)
        self.local.set(key, response, ttl=self._local_ttl(response))
        if not response["success"]:
            logger.info("Cached failure response for %s (TTL: %ds)", key, ttl)
        return response

    async def invalidate(self, provider_id: str | None = None) -> None:
        """Drop one provider's entry from both tiers."""
        key = cache_key(provider_id, self.settings.default_provider)
        self.local.delete(key)
        await self.cache.delete(key)

    async def invalidate_all(self) -> int:
        """Drop every catalog entry from both tiers."""
        self.local.clear()
        return await self.cache.delete_pattern("games:*")

    async def close(self) -> None:
        await self.cache.close()


async def health_check(
    cache: CacheManager, settings: Settings
) -> dict[str, Any]:
    """Round-trip a probe key through the durable cache tier."""
    probe = str(int(time.time() * 1000))
    try:
        await cache.set(HEALTH_KEY, probe, ttl=HEALTH_TTL)
        retrieved = await cache.get(HEALTH_KEY)
        if not cache.is_available or retrieved != probe:
            raise RuntimeError("Redis read/write test failed")
        await cache.delete(HEALTH_KEY)
    except Exception as e:
        logger.warning("Health check failed: %s", e)
        return {
            "status": "unhealthy",
            "timestamp": utc_timestamp(),
            "redis": "disconnected",
            "error": str(e) or "Unknown error",
            "environment": settings.environment,
        }
    return {
        "status": "healthy",
        "timestamp": utc_timestamp(),
        "redis": "connected",
        "environment": settings.environment,
    }
