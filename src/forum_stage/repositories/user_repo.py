"""Per-user data kept up to date when posts are created."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from forum_stage.repositories.store import RedisStore

__all__ = ["UserRepository"]

logger = logging.getLogger(__name__)


class UserRepository:
    """Identity store backed by ``user:{uid}`` hashes."""

    def __init__(self, store: RedisStore) -> None:
        self.store = store

    async def get_field(self, uid: int, field: str) -> str | None:
        """Return a single profile field for ``uid``."""
        return await self.store.get_field(f"user:{uid}", field)

    async def on_new_post(self, post: Mapping[str, Any]) -> None:
        """Record a new post in the author's statistics.

        Guest posts have no profile to update.
        """
        uid = int(post["uid"])
        if uid <= 0:
            return
        pid = int(post["pid"])
        timestamp = int(post["timestamp"])
        pipe = self.store.pipeline()
        pipe.zadd(f"uid:{uid}:posts", {str(pid): timestamp})
        pipe.hincrby(f"user:{uid}", "postcount", 1)
        pipe.hset(f"user:{uid}", "lastposttime", timestamp)
        await pipe.execute()
        logger.debug("Updated post statistics for user %d", uid)
