"""Key/value cache backends selected once at startup"""
import logging
import math
import re
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional, Tuple

from redis.asyncio import Redis

from stay_pricing.core.config import Settings
from stay_pricing.core.metrics import cache_hits, cache_misses

logger = logging.getLogger(__name__)


class CacheBackend(ABC):
    name = "cache"

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    async def set(self, key: str, value: str, ttl: int) -> None:
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        ...

    @abstractmethod
    async def delete_prefix(self, prefix: str) -> int:
        """Delete every key starting with ``prefix``, returning how many went"""

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        pass


class MemoryCache(CacheBackend):
    """Process-local cache with per-entry expiry.

    A write made after the earliest expiry purges every expired entry. Once
    ``max_entries`` entries are held, the oldest write is evicted to make room.
    """

    name = "memory"

    def __init__(self, clock: Callable[[], float] = time.monotonic, max_entries: int = 10000):
        self._clock = clock
        self.max_entries = max_entries
        self._entries: Dict[str, Tuple[str, float]] = {}
        self._next_expiry = math.inf

    async def get(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at <= self._clock():
            del self._entries[key]
            return None
        return value

    async def set(self, key: str, value: str, ttl: int) -> None:
        now = self._clock()
        if now >= self._next_expiry:
            self._purge_expired(now)
        self._entries.pop(key, None)
        while len(self._entries) >= self.max_entries:
            del self._entries[next(iter(self._entries))]
        expires_at = now + ttl
        self._entries[key] = (value, expires_at)
        self._next_expiry = min(self._next_expiry, expires_at)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def delete_prefix(self, prefix: str) -> int:
        doomed = [key for key in self._entries if key.startswith(prefix)]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    async def close(self) -> None:
        self._entries.clear()
        self._next_expiry = math.inf

    def _purge_expired(self, now: float) -> None:
        self._entries = {
            key: entry for key, entry in self._entries.items() if entry[1] > now
        }
        self._next_expiry = min((entry[1] for entry in self._entries.values()), default=math.inf)

    def __len__(self):
        return len(self._entries)


class RedisCache(CacheBackend):
    name = "redis"

    def __init__(self, client: Redis):
        self.client = client

    async def get(self, key: str) -> Optional[str]:
        value = await self.client.get(key)
        if isinstance(value, bytes):
            return value.decode()
        return value

    async def set(self, key: str, value: str, ttl: int) -> None:
        await self.client.set(key, value, ex=ttl)

    async def delete(self, key: str) -> None:
        await self.client.delete(key)

    async def delete_prefix(self, prefix: str) -> int:
        # Escape glob metacharacters so the prefix matches literally
        pattern = re.sub(r"([*?\[\]\\])", r"\\\1", prefix) + "*"
        keys = [key async for key in self.client.scan_iter(match=pattern)]
        if not keys:
            return 0
        await self.client.delete(*keys)
        return len(keys)

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except Exception as e:
            logger.warning(f"Redis ping failed: {e}")
            return False

    async def close(self) -> None:
        await self.client.aclose()


async def build_cache(settings: Settings) -> CacheBackend:
    if not settings.REDIS_URL:
        logger.info("REDIS_URL not set, using in-memory cache")
        return MemoryCache(max_entries=settings.MEMORY_CACHE_MAX_ENTRIES)
    client = Redis.from_url(settings.REDIS_URL, decode_responses=True)
    try:
        await client.ping()
    except Exception as e:
        logger.error(f"Failed to connect to Redis, falling back to in-memory cache: {e}")
        await client.aclose()
        return MemoryCache(max_entries=settings.MEMORY_CACHE_MAX_ENTRIES)
    logger.info("Connected to Redis")
    return RedisCache(client)


async def cache_get(cache: CacheBackend, key: str, namespace: str) -> Optional[str]:
    """Read through the cache, treating backend errors as misses"""
    try:
        value = await cache.get(key)
    except Exception as e:
        logger.warning(f"Cache retrieval failed: {e}")
        value = None
    if value is None:
        cache_misses.labels(namespace=namespace).inc()
    else:
        cache_hits.labels(namespace=namespace).inc()
    return value


async def cache_set(cache: CacheBackend, key: str, value: str, ttl: int) -> None:
    try:
        await cache.set(key, value, ttl)
    except Exception as e:
        logger.warning(f"Cache write failed: {e}")
