"""Persistence primitives over Redis.

Every write the post pipeline performs goes through this wrapper. Counters
are only ever changed with atomic increments so concurrent creators never
read-modify-write shared state.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

import redis.asyncio as redis

__all__ = ["RedisStore"]

logger = logging.getLogger(__name__)


def _encode(value: Any) -> str | int | float:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int | float | str):
        return value
    return str(value)


class RedisStore:
    """Thin wrapper around the Redis commands used for forum records."""

    def __init__(self, client: redis.Redis) -> None:
        """Initialize the store with an asyncio Redis client."""
        self.client = client

    def pipeline(self) -> redis.client.Pipeline:
        """Return a non-transactional pipeline for batching writes."""
        return self.client.pipeline(transaction=False)

    async def allocate_id(self, counter_name: str) -> int:
        """Return the next value of a global id sequence."""
        return await self.increment_counter("global", counter_name)

    async def increment_counter(self, key: str, field: str, delta: int = 1) -> int:
        """Atomically add ``delta`` to a hash field and return the new value."""
        return int(await self.client.hincrby(key, field, delta))

    async def set_record(self, key: str, record: Mapping[str, Any]) -> None:
        """Write the non-null fields of ``record`` to a hash."""
        mapping = {field: _encode(value) for field, value in record.items() if value is not None}
        if not mapping:
            return
        logger.debug("Writing %d fields to %s", len(mapping), key)
        await self.client.hset(key, mapping=mapping)

    async def get_fields(self, key: str, fields: Sequence[str]) -> dict[str, str | None]:
        """Return the requested hash fields, with ``None`` for absent ones."""
        values = await self.client.hmget(key, list(fields))
        return dict(zip(fields, values, strict=True))

    async def get_field(self, key: str, field: str) -> str | None:
        """Return a single hash field."""
        return await self.client.hget(key, field)

    async def add_to_time_index(self, index_key: str, timestamp: int, member: int | str) -> None:
        """Add ``member`` to a sorted set scored by ``timestamp``."""
        await self.client.zadd(index_key, {str(member): timestamp})

    async def remove_from_time_index(self, index_key: str, members: Iterable[int | str]) -> int:
        """Remove members from a sorted set and return how many were removed."""
        values = [str(member) for member in members]
        if not values:
            return 0
        return int(await self.client.zrem(index_key, *values))

    async def sorted_members(self, index_key: str) -> list[str]:
        """Return every member of a sorted set in ascending score order."""
        return list(await self.client.zrange(index_key, 0, -1))

    async def is_member(self, key: str, member: int | str) -> bool:
        """Return True if ``member`` belongs to the set at ``key``."""
        return bool(await self.client.sismember(key, str(member)))

    async def members(self, key: str) -> set[str]:
        """Return the members of the set at ``key``."""
        return set(await self.client.smembers(key))
