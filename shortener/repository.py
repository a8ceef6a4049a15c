"""Repository facade composing the durable store and the fast-path cache.

Only the code -> URL resolution is cached, because it is the redirect hot
path. Every other call goes straight to the store.

Flow Diagram — get_url_by_code()
================================
::
    ┌─────────────┐
    │  code       │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ cache.get   │──── CacheError ──┐ (logged, treated as miss)
    └──────┬──────┘                  │
    HIT?  │                          │
    ┌─────┴─────┐                    │
    │ YES        │ NO ◄──────────────┘
    ▼            ▼
┌─────────┐  ┌─────────────┐
│ Return  │  │ store.get_  │
│ cached  │  │ url_by_code │
└─────────┘  └──────┬──────┘
             FOUND? │
             ┌──────┴──────┐
             │ NO           │ YES
             ▼              ▼
        ┌─────────┐   ┌─────────────┐
        │ None    │   │ cache.set   │ (best effort)
        └─────────┘   │ return url  │
                      └─────────────┘

Classes:
    URLRepository:  Cache-aside facade used by the service and the counter pipeline.
"""

import logging

from prometheus_client import Counter

from shortener.cache import Cache
from shortener.enums import CacheStatus
from shortener.errors import CacheError
from shortener.schemas import URLRecord
from shortener.storage import Storage

__all__ = ["URLRepository"]

logger = logging.getLogger(__name__)

CACHE_LOOKUPS_TOTAL = Counter(
    "shortener_cache_lookups_total",
    "Fast-path cache lookups by outcome",
    ["result"],
)
CACHE_WRITE_FAILURES_TOTAL = Counter(
    "shortener_cache_write_failures_total",
    "Cache writes that failed after a store hit",
)
STORE_CODE_LOOKUPS_TOTAL = Counter(
    "shortener_store_code_lookups_total",
    "Code lookups that fell through to the durable store",
)


class URLRepository:
    def __init__(self, storage: Storage, cache: Cache):
        self._storage = storage
        self._cache = cache

    async def add(self, record: URLRecord) -> URLRecord:
        return await self._storage.add(record)

    async def delete(self, record_id: int) -> None:
        await self._storage.delete(record_id)

    async def get_by_id(self, record_id: int) -> URLRecord | None:
        return await self._storage.get_by_id(record_id)

    async def get_by_url(self, url: str) -> URLRecord | None:
        return await self._storage.get_by_url(url)

    async def increment_counter(self, code: str) -> None:
        await self._storage.increment_counter(code)

    async def get_url_by_code(self, code: str) -> str | None:
        """Resolve ``code`` cache-first.

        Returns:
            The original URL, or None when neither cache nor store knows the code.

        Raises:
            StoreError: If the cache missed and the store lookup failed.
        """
        cached = await self._cache_get(code)
        if cached:
            CACHE_LOOKUPS_TOTAL.labels(result=CacheStatus.HIT).inc()
            return cached

        STORE_CODE_LOOKUPS_TOTAL.inc()
        url = await self._storage.get_url_by_code(code)
        if url:
            await self._cache_set(code, url)
        return url or None

    async def _cache_get(self, code: str) -> str | None:
        try:
            cached = await self._cache.get(code)
        except CacheError:
            CACHE_LOOKUPS_TOTAL.labels(result=CacheStatus.ERROR).inc()
            logger.warning(f"Cache lookup failed for {code}, falling back to store", exc_info=True)
            return None
        if not cached:
            CACHE_LOOKUPS_TOTAL.labels(result=CacheStatus.MISS).inc()
        return cached

    async def _cache_set(self, code: str, url: str) -> None:
        try:
            await self._cache.set(code, url)
        except CacheError:
            CACHE_WRITE_FAILURES_TOTAL.inc()
            logger.warning(f"Failed to cache {code}", exc_info=True)
