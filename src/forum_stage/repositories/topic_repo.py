"""Thread state maintained alongside post creation."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from forum_stage.models.topic import THREAD_FIELDS, ThreadMeta
from forum_stage.repositories.store import RedisStore

__all__ = ["TopicRepository"]


class TopicRepository:
    """Thread store backed by ``topic:{tid}`` hashes."""

    def __init__(self, store: RedisStore) -> None:
        self.store = store

    async def get_fields(self, tid: int, fields: Sequence[str]) -> dict[str, str | None]:
        return await self.store.get_fields(f"topic:{tid}", fields)

    async def get_thread(self, tid: int) -> ThreadMeta:
        """Return the metadata the post pipeline denormalizes from a thread."""
        fields = await self.get_fields(tid, THREAD_FIELDS)
        return ThreadMeta.from_fields(tid, fields)

    async def on_new_post(self, post: Mapping[str, Any]) -> None:
        """Bump the thread's last-post pointer, post list and counters."""
        tid = int(post["tid"])
        pid = int(post["pid"])
        timestamp = int(post["timestamp"])
        pipe = self.store.pipeline()
        pipe.zadd(f"tid:{tid}:posts", {str(pid): timestamp})
        pipe.hincrby(f"topic:{tid}", "postcount", 1)
        pipe.hset(f"topic:{tid}", mapping={"lastposttime": timestamp, "teaserPid": pid})
        pipe.zadd("topics:recent", {str(tid): timestamp})
        await pipe.execute()
