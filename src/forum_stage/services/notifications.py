"""Reply notifications for thread authors.

A notification is a side channel: it is scheduled as a background task, and
whatever happens to it is logged and never reaches the caller of
``PostCreator.create``.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Mapping
from typing import Any

from forum_stage.models.identity import Actor
from forum_stage.models.topic import ThreadMeta
from forum_stage.repositories.user_repo import UserRepository
from forum_stage.services.emailer import Emailer
from forum_stage.services.tasks import TaskTracker

logger = logging.getLogger(__name__)

NOTIFICATION_TEMPLATE = "notification"

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify_title(title: str) -> str:
    """Lower-case ``title`` and collapse every non-alphanumeric run into one hyphen.

    >>> slugify_title("My Topic!")
    'my-topic-'
    """
    return _NON_ALNUM.sub("-", title.lower())


def should_notify(thread: ThreadMeta, actor: Actor) -> bool:
    """Return True if the thread's author should hear about a reply by ``actor``."""
    return bool(thread.tid) and thread.has_author and thread.uid != actor.uid


def build_reply_params(
    post: Mapping[str, Any], thread: ThreadMeta, username: str | None
) -> dict[str, Any]:
    """Return template parameters for a reply notification."""
    return {
        "subject": f'New reply to your topic: "{thread.title}"',
        "notification": {
            "type": "reply",
            "content": post["content"],
            "title": thread.title,
            "pid": int(post["pid"]),
            "topicId": thread.tid,
            "topicSlug": slugify_title(thread.title),
        },
        "username": username,
    }


class ReplyNotifier:
    """Emails a thread's author when someone else replies."""

    def __init__(
        self,
        users: UserRepository,
        emailer: Emailer,
        tasks: TaskTracker,
        locale: str = "en-GB",
    ) -> None:
        self.users = users
        self.emailer = emailer
        self.tasks = tasks
        self.locale = locale

    def schedule(
        self, post: Mapping[str, Any], thread: ThreadMeta, actor: Actor
    ) -> asyncio.Task[None] | None:
        """Start a notification task for ``post`` if one is due."""
        if not should_notify(thread, actor):
            return None
        return self.tasks.spawn(
            self.notify(dict(post), thread),
            name=f"reply-notification:{post['pid']}",
        )

    async def notify(self, post: Mapping[str, Any], thread: ThreadMeta) -> None:
        """Resolve the thread author's address and send the notification."""
        try:
            email, username = await asyncio.gather(
                self.users.get_field(thread.uid, "email"),
                self.users.get_field(thread.uid, "username"),
            )
            if not email:
                logger.info(
                    "Thread %d author %d has no email address; skipping notification",
                    thread.tid,
                    thread.uid,
                )
                return
            params = build_reply_params(post, thread, username)
            await self.emailer.send(NOTIFICATION_TEMPLATE, email, self.locale, params)
        except Exception as exc:
            logger.error(
                'Failed to send notification email for reply to topic "%s"',
                thread.title,
                exc_info=exc,
            )
            return
        logger.debug("Sent reply notification for post %s to uid %d", post["pid"], thread.uid)
