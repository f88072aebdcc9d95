"""Thread metadata consumed by the post pipeline."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

THREAD_FIELDS = ("cid", "pinned", "uid", "title")


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


@dataclass(frozen=True)
class ThreadMeta:
    """Denormalized view of a thread at the moment a post is created."""

    tid: int
    cid: int
    pinned: bool
    uid: int
    title: str

    @classmethod
    def from_fields(cls, tid: int, fields: Mapping[str, Any]) -> "ThreadMeta":
        """Build metadata from a Redis hash read, tolerating missing fields."""
        pinned = fields.get("pinned")
        return cls(
            tid=tid,
            cid=_as_int(fields.get("cid")),
            pinned=str(pinned).lower() in {"1", "true"},
            uid=_as_int(fields.get("uid")),
            title=str(fields.get("title") or ""),
        )

    @property
    def has_author(self) -> bool:
        return self.uid > 0
