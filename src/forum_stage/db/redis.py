"""Redis client configuration."""

from __future__ import annotations

import logging

import redis.asyncio as redis

from forum_stage.core.settings import settings

logger = logging.getLogger(__name__)


def create_redis_client(
    url: str | None = None,
    *,
    max_connections: int | None = None,
    timeout: float | None = None,
) -> redis.Redis:
    """Return an asyncio Redis client with string responses.

    The client draws from a bounded, blocking connection pool: once every
    connection is checked out, further commands wait for one to be released
    instead of failing. The client connects lazily on first command.
    """
    redis_url = url or settings.redis_url
    pool = redis.BlockingConnectionPool.from_url(
        redis_url,
        max_connections=max_connections or settings.redis_max_connections,
        timeout=timeout if timeout is not None else settings.redis_pool_timeout_seconds,
        decode_responses=True,
    )
    logger.debug("Creating Redis client for %s (max %d connections)", redis_url, pool.max_connections)
    return redis.Redis.from_pool(pool)


async def close_redis_client(client: redis.Redis) -> None:
    """Release the connection pool held by ``client``."""
    await client.aclose()
