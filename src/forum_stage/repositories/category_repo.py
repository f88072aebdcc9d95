"""Category rollups maintained alongside post creation."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from forum_stage.repositories.store import RedisStore

__all__ = ["CategoryRepository"]


class CategoryRepository:
    """Category store backed by ``category:{cid}`` hashes and indexes."""

    def __init__(self, store: RedisStore) -> None:
        self.store = store

    async def on_new_post(self, cid: int, pinned: bool, post: Mapping[str, Any]) -> None:
        """Index a new post under its category.

        Pinned threads keep their position in the category's thread list.
        """
        if not cid:
            return
        pid = int(post["pid"])
        tid = int(post["tid"])
        timestamp = int(post["timestamp"])
        pipe = self.store.pipeline()
        pipe.zadd(f"cid:{cid}:pids", {str(pid): timestamp})
        pipe.hincrby(f"category:{cid}", "post_count", 1)
        if not pinned:
            pipe.zadd(f"cid:{cid}:tids", {str(tid): timestamp})
        await pipe.execute()
