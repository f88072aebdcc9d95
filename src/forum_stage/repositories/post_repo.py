"""Data access helpers for working with post records."""

from __future__ import annotations

from collections.abc import Sequence

from forum_stage.repositories.store import RedisStore

__all__ = ["PostRepository", "post_key"]


def post_key(pid: int) -> str:
    return f"post:{pid}"


class PostRepository:
    """Reads individual post hashes."""

    def __init__(self, store: RedisStore) -> None:
        self.store = store

    async def get_fields(self, pid: int, fields: Sequence[str]) -> dict[str, str | None]:
        """Return the requested fields of a post."""
        return await self.store.get_fields(post_key(pid), fields)

    async def get_field(self, pid: int, field: str) -> str | None:
        return await self.store.get_field(post_key(pid), field)
