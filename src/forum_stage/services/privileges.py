"""Yes/no privilege answers consumed by the post pipeline."""

from __future__ import annotations

from forum_stage.repositories.post_repo import PostRepository
from forum_stage.repositories.store import RedisStore
from forum_stage.repositories.topic_repo import TopicRepository

VIEW_DELETED = "posts:view_deleted"
ADMIN_GROUP = "administrators"


class PrivilegeService:
    """Answers per-post privilege questions.

    Administrators hold every privilege. Everyone else needs an explicit
    grant in the post's category, stored in ``cid:{cid}:privileges:{name}``.
    """

    def __init__(self, store: RedisStore) -> None:
        self.store = store
        self.posts = PostRepository(store)
        self.topics = TopicRepository(store)

    async def is_admin(self, uid: int) -> bool:
        if uid <= 0:
            return False
        return await self.store.is_member(f"group:{ADMIN_GROUP}:members", uid)

    async def can(self, privilege: str, pid: int, uid: int) -> bool:
        """Return True if ``uid`` holds ``privilege`` for post ``pid``."""
        if await self.is_admin(uid):
            return True
        tid = await self.posts.get_field(pid, "tid")
        if not tid:
            return False
        cid = (await self.topics.get_fields(int(tid), ["cid"]))["cid"]
        if not cid:
            return False
        return await self.store.is_member(f"cid:{cid}:privileges:{privilege}", uid)
