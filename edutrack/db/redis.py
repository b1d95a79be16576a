"""Redis connection management.

Mirrors engine.py: when REDIS_URL is configured a connection pool is
created at import; when it is unset (local dev, tests) redis_pool is None
and the token blacklist falls back to its in-memory implementation.

Redis only holds ephemeral data here (revoked token ids with a TTL), so
losing it on restart re-admits tokens that were logged out but have not
yet expired. Nothing else depends on it.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis

from edutrack.core.config import SETTINGS

logger = logging.getLogger(__name__)

if SETTINGS.redis_url:
    redis_pool: aioredis.Redis | None = aioredis.from_url(  # type: ignore[type-arg]
        SETTINGS.redis_url,
        decode_responses=True,
        max_connections=20,
    )
else:
    redis_pool = None


async def ping_redis() -> bool:
    """Readiness probe helper; False when unconfigured or unreachable."""
    if redis_pool is None:
        return False
    try:
        return bool(await redis_pool.ping())  # type: ignore[misc]
    except Exception:
        logger.warning("Redis ping failed", exc_info=True)
        return False


@asynccontextmanager
async def lifespan_redis():
    """Startup/shutdown hook for Redis, mirrors lifespan_db()."""
    if redis_pool is None:
        logger.info("No REDIS_URL configured, token blacklist is in-memory")
        yield
        return

    if await ping_redis():
        logger.info("Redis connected: %s", SETTINGS.redis_url)
    else:
        # Keep serving; blacklist calls will surface the error per request.
        logger.error("Redis unreachable on startup: %s", SETTINGS.redis_url)

    yield

    await redis_pool.aclose()
    logger.info("Redis connection pool closed")
