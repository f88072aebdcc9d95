"""Attachment bookkeeping for posts."""

from __future__ import annotations

import logging
import re

from forum_stage.repositories.post_repo import post_key
from forum_stage.repositories.store import RedisStore

__all__ = ["UploadSync", "find_upload_paths"]

logger = logging.getLogger(__name__)

_UPLOAD_PATTERN = re.compile(r"/assets/uploads/files/([^\s\"'()<>\[\]]+)")


def find_upload_paths(content: str) -> list[str]:
    """Return the upload paths referenced by ``content`` in order of appearance."""
    seen: dict[str, None] = {}
    for match in _UPLOAD_PATTERN.finditer(content):
        seen.setdefault(match.group(1), None)
    return list(seen)


class UploadSync:
    """Keeps ``post:{pid}:uploads`` in step with the files a post references."""

    def __init__(self, store: RedisStore) -> None:
        self.store = store

    async def sync(self, pid: int, timestamp: int) -> None:
        """Link newly referenced uploads at ``timestamp`` and drop stale ones."""
        content = await self.store.get_field(post_key(pid), "content") or ""
        referenced = find_upload_paths(content)
        index_key = f"post:{pid}:uploads"
        current = set(await self.store.sorted_members(index_key))

        added = [path for path in referenced if path not in current]
        stale = sorted(current.difference(referenced))
        if not added and not stale:
            return

        pipe = self.store.pipeline()
        if added:
            pipe.zadd(index_key, {path: timestamp for path in added})
        if stale:
            pipe.zrem(index_key, *stale)
        await pipe.execute()
        logger.debug(
            "Synced uploads for post %d: %d added, %d removed",
            pid,
            len(added),
            len(stale),
        )
