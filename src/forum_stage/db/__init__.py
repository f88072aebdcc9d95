"""Redis connection helpers."""

from .redis import close_redis_client, create_redis_client

__all__ = ["create_redis_client", "close_redis_client"]
