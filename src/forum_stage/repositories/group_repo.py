"""Group activity feeds."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from forum_stage.repositories.store import RedisStore

__all__ = ["GroupRepository"]


class GroupRepository:
    """Group store; membership lives in ``uid:{uid}:groups`` sets."""

    def __init__(self, store: RedisStore) -> None:
        self.store = store

    async def groups_for(self, uid: int) -> set[str]:
        return await self.store.members(f"uid:{uid}:groups")

    async def on_new_post(self, post: Mapping[str, Any]) -> None:
        """Add the post to the activity feed of every group its author is in."""
        uid = int(post["uid"])
        if uid <= 0:
            return
        groups = await self.groups_for(uid)
        if not groups:
            return
        pid = int(post["pid"])
        timestamp = int(post["timestamp"])
        pipe = self.store.pipeline()
        for name in sorted(groups):
            pipe.zadd(f"group:{name}:member:pids", {str(pid): timestamp})
        await pipe.execute()
