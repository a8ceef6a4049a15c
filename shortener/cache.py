"""Fast-path cache contract and its Redis implementation.

The cache maps ``code -> original_url`` for the redirect hot path. It is an
optimization, never a source of truth: every failure surfaces as
``CacheError`` so the repository can degrade to the durable store.

Availability is decided per call. There is no "disabled" flag that stays
tripped after an outage, so the cache starts serving again as soon as Redis
answers.

Classes:
    Cache:  Abstract async contract consumed by the repository.
    RedisCache:  ``redis.asyncio`` implementation, keys ``url:<code>``, no TTL.
"""

from abc import ABC, abstractmethod

import redis.asyncio as redis
from redis.exceptions import RedisError

from shortener.errors import CacheError

__all__ = ["Cache", "RedisCache"]

CACHE_KEY_PREFIX = "url"


class Cache(ABC):
    """Abstract async code -> URL cache."""

    @abstractmethod
    async def get(self, code: str) -> str | None:  # pragma: no cover
        """Return the cached URL, or None on a miss.

        Raises:
            CacheError: If the backend could not be queried.
        """
        raise NotImplementedError

    @abstractmethod
    async def set(self, code: str, url: str) -> None:  # pragma: no cover
        raise NotImplementedError


class RedisCache(Cache):
    def __init__(self, client: redis.Redis):
        self._client = client

    @staticmethod
    def _key(code: str) -> str:
        return f"{CACHE_KEY_PREFIX}:{code}"

    async def get(self, code: str) -> str | None:
        try:
            value = await self._client.get(self._key(code))
        except RedisError as exc:
            raise CacheError(f"unable to get short url from cache: {exc}") from exc
        return value or None

    async def set(self, code: str, url: str) -> None:
        try:
            await self._client.set(self._key(code), url)
        except RedisError as exc:
            raise CacheError(f"unable to add short url to cache: {exc}") from exc

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError:
            return False
