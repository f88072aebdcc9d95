"""Validation and normalization of reply submissions.

Everything here runs before a post id is allocated, so a failure leaves no
trace in storage.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any

from forum_stage.core.errors import InvalidParentReferenceError
from forum_stage.core.settings import Settings
from forum_stage.models.identity import GUEST_UID, Actor, parse_actor
from forum_stage.repositories.post_repo import PostRepository
from forum_stage.schemas.post import PostSubmission
from forum_stage.services.privileges import VIEW_DELETED, PrivilegeService

logger = logging.getLogger(__name__)


def now_ms() -> int:
    """Return the current time in epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class NormalizedPost:
    """A submission whose actor and parent reference have been checked."""

    actor: Actor
    tid: int
    content: str
    timestamp: int
    is_main: bool = False
    to_pid: int | None = None
    ip: str | None = None
    handle: str | None = None
    anonymous: bool = False

    @property
    def author_uid(self) -> int:
        """Uid stored on the post; anonymous posts are attributed to the guest."""
        return GUEST_UID if self.anonymous else self.actor.uid


class PostValidator:
    """Turns a :class:`PostSubmission` into a :class:`NormalizedPost`."""

    def __init__(
        self,
        posts: PostRepository,
        privileges: PrivilegeService,
        settings: Settings,
    ) -> None:
        self.posts = posts
        self.privileges = privileges
        self.settings = settings

    async def normalize(self, submission: PostSubmission) -> NormalizedPost:
        """Validate the actor and parent reference of ``submission``.

        Raises:
            InvalidActorError: If the submitting uid is missing or malformed.
            InvalidParentReferenceError: If the post being replied to is not
                visible to the actor.
        """
        actor = parse_actor(submission.uid)
        # Post ids start at 1, so a zero parent means a top-level reply.
        to_pid = submission.to_pid or None
        if to_pid:
            await self.check_parent(to_pid, actor)

        return NormalizedPost(
            actor=actor,
            tid=submission.tid,
            content=submission.content,
            timestamp=submission.timestamp or now_ms(),
            is_main=submission.is_main,
            to_pid=to_pid,
            ip=submission.ip,
            handle=submission.handle,
            anonymous=submission.anonymous,
        )

    async def check_parent(self, to_pid: int, actor: Actor) -> None:
        """Ensure ``to_pid`` exists and, if soft-deleted, that ``actor`` may see it."""
        parent, can_view_deleted = await asyncio.gather(
            self.posts.get_fields(to_pid, ["pid", "deleted"]),
            self.privileges.can(VIEW_DELETED, to_pid, actor.uid),
        )
        exists = bool(parent.get("pid"))
        deleted = str(parent.get("deleted")).lower() in {"1", "true"}
        if not exists or (deleted and not can_view_deleted):
            logger.debug("Rejecting reply from uid %d to post %d", actor.uid, to_pid)
            raise InvalidParentReferenceError(to_pid)

    def build_record(self, pid: int, post: NormalizedPost) -> dict[str, Any]:
        """Return the canonical record for a freshly allocated ``pid``."""
        record: dict[str, Any] = {
            "pid": pid,
            "uid": post.author_uid,
            "tid": post.tid,
            "content": post.content,
            "timestamp": post.timestamp,
        }
        if post.to_pid:
            record["to_pid"] = post.to_pid
        if post.ip and self.settings.track_ip_per_post:
            record["ip"] = post.ip
        # Handles are only meaningful for guests, who have no username.
        if post.handle and post.actor.is_guest:
            record["handle"] = post.handle
        return record
