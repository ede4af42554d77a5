"""Two-tier TTL cache: durable Redis tier and process-local tier.

Both tiers share one key space (``cache_key()``). Every durable value
is wrapped in a ``CacheEntry`` carrying its own creation timestamp and
TTL, and reads enforce that TTL themselves -- a key the store has not
evicted yet is still a miss once the entry is older than its TTL.

When Redis cannot be reached, ``CacheManager`` swaps in ``NullStore``
(always misses, accepts writes) and the pipeline carries on uncached.
"""

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from gamefeed._config import DEFAULT_CACHE_TTL, DEFAULT_LOCAL_TTL, DEFAULT_PROVIDER
from gamefeed._errors import CacheUnavailable

logger = logging.getLogger("gamefeed")


def cache_key(provider_id: str | None, default: str = DEFAULT_PROVIDER) -> str:
    """Derive the cache key for a provider (both tiers use this)."""
    return f"games:{provider_id or default}"


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class CacheEntry:
    """A cached payload plus the metadata needed to judge its age."""

    data: Any
    timestamp: int
    ttl: int
    provider: str | None = None

    def age_seconds(self, now_ms: int | None = None) -> float:
        now = _now_ms() if now_ms is None else now_ms
        return (now - self.timestamp) / 1000

    def is_expired(self, now_ms: int | None = None) -> bool:
        return self.age_seconds(now_ms) >= self.ttl

    def to_json(self) -> str:
        return json.dumps(
            {
                "data": self.data,
                "timestamp": self.timestamp,
                "ttl": self.ttl,
                "provider": self.provider,
            }
        )

    @classmethod
    def from_json(cls, raw: str | bytes) -> "CacheEntry":
        """Decode a stored entry. Raises ValueError on malformed input."""
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        payload = json.loads(raw)
        if not isinstance(payload, dict):
            raise ValueError("cache entry is not an object")
        try:
            return cls(
                data=payload["data"],
                timestamp=int(payload["timestamp"]),
                ttl=int(payload.get("ttl", DEFAULT_CACHE_TTL)),
                provider=payload.get("provider"),
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"cache entry missing field: {e}") from None


class NullStore:
    """Stand-in for Redis when the server is unreachable.

    Mirrors the subset of the ``redis.asyncio.Redis`` API the cache
    manager uses. Reads always miss; writes are accepted and dropped.
    """

    async def get(self, key: str) -> None:
        logger.debug("No-op store GET %s (always misses)", key)
        return None

    async def set(self, key: str, value: str, ex: int | None = None) -> bool:
        logger.debug(
            "No-op store SET %s (%d chars, ex=%s)", key, len(value), ex
        )
        return True

    async def delete(self, *keys: str) -> int:
        logger.debug("No-op store DEL %s", ", ".join(keys))
        return 0

    async def scan_iter(self, match: str | None = None):
        logger.debug("No-op store SCAN %s (always empty)", match)
        return
        yield  # pragma: no cover

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        pass


class CacheManager:
    """Durable cache tier backed by Redis.

    The connection is made lazily on first use. A failed connection is
    not retried: the manager keeps using ``NullStore`` for the rest of
    its life, so a dead Redis costs one connect timeout per process
    rather than one per request.
    """

    def __init__(
        self,
        url: str,
        default_ttl: int = DEFAULT_CACHE_TTL,
        *,
        client=None,
        connect_timeout: float = 10.0,
        command_timeout: float = 5.0,
    ):
        self._url = url
        self._default_ttl = default_ttl
        self._client = client
        self._connect_timeout = connect_timeout
        self._command_timeout = command_timeout
        self._connect_lock = asyncio.Lock()

    @property
    def is_available(self) -> bool:
        """True once connected to a real store (not the no-op stand-in)."""
        return self._client is not None and not isinstance(
            self._client, NullStore
        )

    async def _connect(self):
        try:
            client = aioredis.from_url(
                self._url,
                decode_responses=True,
                socket_connect_timeout=self._connect_timeout,
                socket_timeout=self._command_timeout,
            )
        except ValueError as e:
            raise CacheUnavailable(self._url, str(e)) from e
        try:
            await client.ping()
        except (RedisError, OSError) as e:
            try:
                await client.aclose()
            except (RedisError, OSError):
                logger.debug("Error closing failed Redis client", exc_info=True)
            raise CacheUnavailable(self._url, str(e)) from e
        return client

    async def _get_client(self):
        if self._client is not None:
            return self._client
        async with self._connect_lock:
            if self._client is not None:
                return self._client
            try:
                self._client = await self._connect()
                logger.info("Redis connected at %s", self._url)
            except CacheUnavailable as e:
                logger.warning("%s; using no-op store (cache disabled)", e)
                self._client = NullStore()
        return self._client

    async def get_entry(self, key: str) -> CacheEntry | None:
        """Return the live ``CacheEntry`` for *key*, or None on miss/expiry."""
        client = await self._get_client()
        try:
            raw = await client.get(key)
        except (RedisError, OSError):
            logger.warning("Cache GET error for %s", key, exc_info=True)
            return None

        if raw is None:
            logger.info("Cache MISS: %s", key)
            return None

        try:
            entry = CacheEntry.from_json(raw)
        except ValueError:
            logger.warning("Corrupt cache entry for %s, ignoring", key)
            return None

        age = entry.age_seconds()
        if entry.is_expired():
            logger.info(
                "Cache EXPIRED: %s (%.0fs old, ttl %ds)", key, age, entry.ttl
            )
            return None

        logger.info("Cache HIT: %s (%.0fs old)", key, age)
        return entry

    async def get(self, key: str) -> Any | None:
        """Return the cached payload for *key*, or None on miss/expiry."""
        entry = await self.get_entry(key)
        return None if entry is None else entry.data

    async def set(
        self,
        key: str,
        data: Any,
        ttl: int | None = None,
        provider: str | None = None,
    ) -> None:
        """Store *data* under *key* for *ttl* seconds (last write wins)."""
        ttl = ttl or self._default_ttl
        entry = CacheEntry(
            data=data, timestamp=_now_ms(), ttl=ttl, provider=provider
        )
        client = await self._get_client()
        try:
            await client.set(key, entry.to_json(), ex=ttl)
        except (RedisError, OSError):
            logger.warning("Cache SET error for %s", key, exc_info=True)
            return
        logger.info("Cache SET: %s (TTL: %ds)", key, ttl)

    async def delete(self, key: str) -> None:
        client = await self._get_client()
        try:
            await client.delete(key)
        except (RedisError, OSError):
            logger.warning("Cache DELETE error for %s", key, exc_info=True)
            return
        logger.info("Cache DELETE: %s", key)

    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob *pattern*. Returns the count."""
        client = await self._get_client()
        try:
            keys = [k async for k in client.scan_iter(match=pattern)]
            if not keys:
                return 0
            await client.delete(*keys)
        except (RedisError, OSError):
            logger.warning(
                "Cache DELETE pattern error for %s", pattern, exc_info=True
            )
            return 0
        logger.info("Cache DELETE pattern: %s (%d keys)", pattern, len(keys))
        return len(keys)

    async def close(self) -> None:
        if self._client is None:
            return
        try:
            await self._client.aclose()
        except (RedisError, OSError):
            logger.debug("Error closing Redis client", exc_info=True)
        self._client = None


class MemoryCache:
    """Process-local TTL cache in front of the durable tier.

    Uses the monotonic clock, so entries are unaffected by wall-clock
    adjustments. Expired entries are ignored on read and removed by
    ``sweep()``, which the service runs on every request.
    """

    def __init__(self, ttl: float = DEFAULT_LOCAL_TTL, clock=time.monotonic):
        self._ttl = ttl
        self._clock = clock
        self._entries: dict[str, tuple[float, float, Any]] = {}

    def get(self, key: str) -> Any | None:
        item = self._entries.get(key)
        if item is None:
            return None
        created, ttl, value = item
        if self._clock() - created >= ttl:
            return None
        return value

    def age(self, key: str) -> float | None:
        item = self._entries.get(key)
        if item is None:
            return None
        return self._clock() - item[0]

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        self._entries[key] = (
            self._clock(),
            self._ttl if ttl is None else ttl,
            value,
        )

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def sweep(self) -> int:
        """Drop expired entries. Returns how many were removed."""
        now = self._clock()
        expired = [
            key
            for key, (created, ttl, _) in self._entries.items()
            if now - created >= ttl
        ]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Swept %d expired local cache entries", len(expired))
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None
