"""Service-level orchestration for creating posts."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import redis.asyncio as redis

from forum_stage.core.settings import Settings
from forum_stage.repositories import (
    CategoryRepository,
    GroupRepository,
    PostRepository,
    RedisStore,
    TopicRepository,
    UploadSync,
    UserRepository,
)
from forum_stage.repositories.post_repo import post_key
from forum_stage.schemas.post import PostSubmission, PostView
from forum_stage.services.emailer import Emailer
from forum_stage.services.fanout import FanOutCoordinator
from forum_stage.services.hooks import HookEvent, PluginHooks
from forum_stage.services.notifications import ReplyNotifier
from forum_stage.services.privileges import PrivilegeService
from forum_stage.services.tasks import TaskTracker
from forum_stage.services.validation import PostValidator

logger = logging.getLogger(__name__)

POST_ID_COUNTER = "nextPid"


class PostCreator:
    """Turns a reply submission into a stored, fully indexed post.

    Steps, in order:

    1. Validate the actor and parent reference (no writes yet).
    2. Allocate the post id from the global sequence.
    3. Run ``filter:post.create`` and write the canonical record.
    4. Read the thread, then fan out secondary updates while the reply
       notification runs in the background.
    5. Run ``filter:post.get``, mark ``is_main`` and fire ``action:post.save``.
    """

    def __init__(
        self,
        *,
        store: RedisStore,
        validator: PostValidator,
        topics: TopicRepository,
        fanout: FanOutCoordinator,
        notifier: ReplyNotifier,
        hooks: PluginHooks,
        tasks: TaskTracker,
    ) -> None:
        self.store = store
        self.validator = validator
        self.topics = topics
        self.fanout = fanout
        self.notifier = notifier
        self.hooks = hooks
        self.tasks = tasks

    async def create(self, submission: PostSubmission | Mapping[str, Any]) -> PostView:
        """Create a post and return it once every dependent update has settled.

        Args:
            submission: The reply as submitted, either validated or as a mapping.

        Returns:
            The stored post with its category and ``is_main`` flag attached.

        Raises:
            InvalidActorError: If the submitting uid is missing or malformed.
            InvalidParentReferenceError: If the replied-to post is not visible.
            FanOutError: If the post was stored but secondary updates failed.
        """
        if not isinstance(submission, PostSubmission):
            submission = PostSubmission.model_validate(submission)

        normalized = await self.validator.normalize(submission)
        actor = normalized.actor

        pid = await self.store.allocate_id(POST_ID_COUNTER)
        record = self.validator.build_record(pid, normalized)
        filtered = await self.hooks.apply_filters(
            HookEvent.FILTER_POST_CREATE,
            {"post": record, "data": submission.model_dump()},
        )
        record = filtered["post"]
        await self.store.set_record(post_key(int(record["pid"])), record)
        logger.debug("Stored post %s in topic %s", record["pid"], record["tid"])

        # From here on the post exists; later failures leave it in place.
        thread = await self.topics.get_thread(int(record["tid"]))
        record["cid"] = thread.cid

        self.notifier.schedule(record, thread, actor)
        await self.fanout.fan_out(record, thread)

        result = await self.hooks.apply_filters(
            HookEvent.FILTER_POST_GET,
            {"post": record, "uid": actor.uid},
        )
        post = dict(result["post"])
        post["is_main"] = normalized.is_main
        view = PostView.model_validate(post)

        self.tasks.spawn(
            self.hooks.fire_actions(HookEvent.ACTION_POST_SAVE, {"post": view.model_dump()}),
            name=f"action:post.save:{view.pid}",
        )
        logger.info("Created post %d in topic %d by uid %d", view.pid, view.tid, actor.uid)
        return view


def build_post_creator(
    client: redis.Redis,
    settings: Settings,
    *,
    emailer: Emailer,
    tasks: TaskTracker,
    hooks: PluginHooks | None = None,
) -> PostCreator:
    """Wire a :class:`PostCreator` to Redis-backed collaborators."""
    store = RedisStore(client)
    posts = PostRepository(store)
    users = UserRepository(store)
    topics = TopicRepository(store)
    return PostCreator(
        store=store,
        validator=PostValidator(posts, PrivilegeService(store), settings),
        topics=topics,
        fanout=FanOutCoordinator(
            store,
            users=users,
            topics=topics,
            categories=CategoryRepository(store),
            groups=GroupRepository(store),
            uploads=UploadSync(store),
        ),
        notifier=ReplyNotifier(users, emailer, tasks, locale=settings.notification_locale),
        hooks=hooks or PluginHooks(),
        tasks=tasks,
    )
