"""Dependent updates issued once a post has been written."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Mapping
from typing import Any

from forum_stage.core.errors import FanOutError
from forum_stage.models.topic import ThreadMeta
from forum_stage.repositories import (
    CategoryRepository,
    GroupRepository,
    RedisStore,
    TopicRepository,
    UploadSync,
    UserRepository,
)
from forum_stage.repositories.post_repo import post_key

logger = logging.getLogger(__name__)

GLOBAL_POST_INDEX = "posts:pid"


class FanOutCoordinator:
    """Issues every secondary update for a committed post concurrently.

    The units are independent of one another and only read the committed
    post. All of them are awaited, even when one fails early. Nothing is
    rolled back, so a :class:`FanOutError` means the post exists but some
    counters or indexes may lag behind.
    """

    def __init__(
        self,
        store: RedisStore,
        users: UserRepository,
        topics: TopicRepository,
        categories: CategoryRepository,
        groups: GroupRepository,
        uploads: UploadSync,
    ) -> None:
        self.store = store
        self.users = users
        self.topics = topics
        self.categories = categories
        self.groups = groups
        self.uploads = uploads

    async def fan_out(self, post: Mapping[str, Any], thread: ThreadMeta) -> None:
        """Update indexes, counters and subsystems for ``post``.

        Raises:
            FanOutError: If any unit failed, after all of them have settled.
        """
        pid = int(post["pid"])
        timestamp = int(post["timestamp"])
        units: dict[str, Awaitable[Any]] = {
            "post_index": self.store.add_to_time_index(GLOBAL_POST_INDEX, timestamp, pid),
            "post_count": self.store.increment_counter("global", "postCount"),
            "user": self.users.on_new_post(post),
            "topic": self.topics.on_new_post(post),
            "category": self.categories.on_new_post(thread.cid, thread.pinned, post),
            "groups": self.groups.on_new_post(post),
            "reply_edge": self.add_reply_edge(post),
            "uploads": self.uploads.sync(pid, timestamp),
        }
        results = await asyncio.gather(*units.values(), return_exceptions=True)

        failures = [
            (name, result)
            for name, result in zip(units, results, strict=True)
            if isinstance(result, BaseException)
        ]
        if failures:
            for name, exc in failures:
                logger.warning("Fan-out unit %s failed for post %d: %r", name, pid, exc)
            raise FanOutError(pid, failures)

    async def add_reply_edge(self, post: Mapping[str, Any]) -> None:
        """Link a reply to its parent and bump the parent's reply count."""
        to_pid = post.get("to_pid")
        if not to_pid:
            return
        pid = int(post["pid"])
        await asyncio.gather(
            self.store.add_to_time_index(f"pid:{to_pid}:replies", int(post["timestamp"]), pid),
            self.store.increment_counter(post_key(int(to_pid)), "replies"),
        )
