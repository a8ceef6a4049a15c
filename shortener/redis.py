"""Redis client management for the fast-path cache.

Flow Diagram — Redis Client
===========================
::
    ┌─────────────┐
    │ get_redis() │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Check global │
    │ client var   │
    └──────┬──────┘
    EXISTS?  │
    ┌─────┴─────┐
    │ NO         │ YES
    ▼            ▼
┌─────────┐  ┌─────────┐
│ Create  │  │ Return  │
│ Redis   │  │ existing│
│ client  │  │ client  │
└─────────┘  └─────────┘

Key Behaviours
===============
- Redis client is created lazily on first access and reused afterwards.
- Creating the client does not connect; an unreachable server only shows up
  as errors on individual commands, which the cache adapter turns into misses.
- Short socket timeouts keep a dead cache from stalling redirects.
- UTF-8 encoding with decode_responses for string operations.

Functions:
    get_redis():  Shared client (also usable as a FastAPI dependency).
    close_redis():  Cleanup function for shutdown.
"""

import redis.asyncio as redis

from shortener.config import get_settings

__all__ = ["close_redis", "get_redis"]

settings = get_settings()

redis_client: redis.Redis | None = None


async def get_redis() -> redis.Redis:
    global redis_client
    if redis_client is None:
        redis_client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            socket_timeout=settings.REDIS_SOCKET_TIMEOUT_SECONDS,
            socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT_SECONDS,
        )
    return redis_client


async def close_redis() -> None:
    global redis_client
    if redis_client is not None:
        await redis_client.aclose()
        redis_client = None
