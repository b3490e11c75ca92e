"""
Venue match result cache.

Cache key:  normalized missing slug
Value:      the full MatchResult (the decision, not an HTTP action)
TTL:        3600 seconds by default

Entries are never invalidated on store writes; venue merges/renames are
rare compared to the TTL. The resolver re-checks that a cached redirect
target still exists and calls discard() when it does not.

Concurrent misses for the same key may both compute and both write. That is
fine: the same inputs against an unchanged store give the same decision.

Backends:
  InMemoryResultCache  per-process dict, lock-free reads
  RedisResultCache     shared across workers, degrades to a miss on error
  NullResultCache      always computes
"""

from __future__ import annotations

import json
import logging
import time
from typing import Awaitable, Callable, Optional

from services.api.venues.models import MatchResult, result_from_dict, result_to_dict

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3600

Compute = Callable[[], Awaitable[MatchResult]]


class ResultCache:
    """Interface shared by every backend."""

    async def get_or_resolve(self, key: str, compute: Compute) -> MatchResult:
        raise NotImplementedError

    async def discard(self, key: str) -> None:
        raise NotImplementedError


class NullResultCache(ResultCache):
    async def get_or_resolve(self, key: str, compute: Compute) -> MatchResult:
        return await compute()

    async def discard(self, key: str) -> None:
        return None


class InMemoryResultCache(ResultCache):
    """
    Process-local TTL cache.

    Usage:
        cache = InMemoryResultCache(ttl_seconds=3600)
        result = await cache.get_or_resolve("albion-hotel", compute)
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, tuple[MatchResult, float]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def peek(self, key: str) -> Optional[MatchResult]:
        """Unexpired cached result, or None. Never computes."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        result, expires_at = entry
        if self._clock() >= expires_at:
            self._entries.pop(key, None)
            return None
        return result

    def put(self, key: str, result: MatchResult) -> None:
        if self._max_entries is not None and key not in self._entries:
            while len(self._entries) >= self._max_entries:
                oldest = next(iter(self._entries), None)
                if oldest is None:
                    break
                self._entries.pop(oldest, None)
        self._entries[key] = (result, self._clock() + self._ttl)

    async def get_or_resolve(self, key: str, compute: Compute) -> MatchResult:
        cached = self.peek(key)
        if cached is not None:
            logger.debug("Venue match cache hit: %s", key)
            return cached

        logger.debug("Venue match cache miss: %s", key)
        result = await compute()
        self.put(key, result)
        return result

    async def discard(self, key: str) -> None:
        self._entries.pop(key, None)


def _cache_key(key: str) -> str:
    return f"venue_match:{key}"


class RedisResultCache(ResultCache):
    """
    Redis-backed cache shared by all workers.

    Args:
        redis: An async Redis client (redis.asyncio compatible).
               May be None -- every lookup then computes directly.
    """

    def __init__(self, redis, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> None:
        self._redis = redis
        self._ttl = int(ttl_seconds)

    async def _get(self, key: str) -> Optional[MatchResult]:
        redis_key = _cache_key(key)
        try:
            raw = await self._redis.get(redis_key)
        except Exception:
            logger.warning("Venue match cache GET failed for key=%s", redis_key, exc_info=True)
            return None
        if raw is None:
            logger.debug("Venue match cache miss: %s", redis_key)
            return None
        try:
            return result_from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError, AttributeError):
            logger.warning("Discarding unreadable venue match cache entry key=%s", redis_key)
            return None

    async def _set(self, key: str, result: MatchResult) -> None:
        redis_key = _cache_key(key)
        try:
            await self._redis.set(redis_key, json.dumps(result_to_dict(result)), ex=self._ttl)
        except Exception:
            logger.warning("Venue match cache SET failed for key=%s", redis_key, exc_info=True)

    async def get_or_resolve(self, key: str, compute: Compute) -> MatchResult:
        if self._redis is None:
            return await compute()

        cached = await self._get(key)
        if cached is not None:
            logger.debug("Venue match cache hit: %s", key)
            return cached

        result = await compute()
        await self._set(key, result)
        return result

    async def discard(self, key: str) -> None:
        if self._redis is None:
            return
        redis_key = _cache_key(key)
        try:
            await self._redis.delete(redis_key)
        except Exception:
            logger.warning("Venue match cache DELETE failed for key=%s", redis_key, exc_info=True)


def build_result_cache(backend: str, redis=None, ttl_seconds: int = DEFAULT_TTL_SECONDS,
                       max_entries: Optional[int] = None) -> ResultCache:
    """Pick a backend by name: 'memory', 'redis' or 'none'."""
    if backend == "redis":
        return RedisResultCache(redis, ttl_seconds=ttl_seconds)
    if backend == "none":
        return NullResultCache()
    if backend == "memory":
        return InMemoryResultCache(ttl_seconds=ttl_seconds, max_entries=max_entries)
    raise ValueError(f"Unknown venue match cache backend: {backend!r}")
