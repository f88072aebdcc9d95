"""End-to-end tests for the post creation pipeline."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from forum_stage.core.errors import (
    FanOutError,
    HookError,
    InvalidActorError,
    InvalidParentReferenceError,
)
from forum_stage.schemas.post import PostView
from forum_stage.services import HookEvent, build_post_creator
from forum_stage.services.privileges import VIEW_DELETED
from tests.conftest import make_settings, seed_post


def _reply(**overrides):
    data = {"uid": 5, "tid": 9, "content": "hello", "anonymous": False}
    data.update(overrides)
    return data


@pytest.mark.asyncio
async def test_reply_to_someone_elses_topic(creator, redis_client, emailer, tasks, forum) -> None:
    post = await creator.create(_reply())
    await tasks.drain()

    assert isinstance(post, PostView)
    assert post.pid == 1
    assert post.uid == 5
    assert post.tid == 9
    assert post.cid == forum["cid"]
    assert post.content == "hello"
    assert post.is_main is False

    stored = await redis_client.hgetall(f"post:{post.pid}")
    assert stored["uid"] == "5"
    assert stored["content"] == "hello"

    emailer.send.assert_awaited_once()
    template, recipient, locale, params = emailer.send.await_args.args
    assert (template, recipient, locale) == ("notification", "owner@example.com", "en-GB")
    assert params["notification"]["topicSlug"] == "my-topic-"
    assert params["notification"]["pid"] == post.pid
    assert params["username"] == "owner"


@pytest.mark.asyncio
async def test_fan_out_updates_every_subsystem(creator, redis_client, forum) -> None:
    await redis_client.sadd("uid:5:groups", "editors")
    post = await creator.create(
        _reply(content="see /assets/uploads/files/pic.png", timestamp=5_000)
    )

    pid = str(post.pid)
    assert await redis_client.zrange("posts:pid", 0, -1, withscores=True) == [(pid, 5000.0)]
    assert await redis_client.hget("global", "postCount") == "1"
    assert await redis_client.zrange("uid:5:posts", 0, -1) == [pid]
    assert await redis_client.zrange("tid:9:posts", 0, -1) == [pid]
    assert await redis_client.zrange("cid:3:pids", 0, -1) == [pid]
    assert await redis_client.zrange("group:editors:member:pids", 0, -1) == [pid]
    assert await redis_client.zrange(f"post:{pid}:uploads", 0, -1) == ["pic.png"]


@pytest.mark.asyncio
async def test_concurrent_creations_get_unique_ids(creator, redis_client, forum) -> None:
    posts = await asyncio.gather(*(creator.create(_reply(content=f"#{i}")) for i in range(25)))

    pids = [post.pid for post in posts]
    assert len(set(pids)) == 25
    assert set(pids) == set(range(1, 26))
    assert await redis_client.hget("global", "nextPid") == "25"
    assert await redis_client.hget("global", "postCount") == "25"


@pytest.mark.asyncio
async def test_anonymous_posts_belong_to_the_guest(creator, redis_client, forum) -> None:
    post = await creator.create(_reply(anonymous=True, handle="ghost"))

    assert post.uid == 0
    assert post.handle is None
    assert await redis_client.hget(f"post:{post.pid}", "uid") == "0"


@pytest.mark.asyncio
async def test_guest_handle_is_stored(creator, redis_client, forum) -> None:
    post = await creator.create(_reply(uid=0, handle="visitor"))

    assert post.handle == "visitor"
    assert await redis_client.hget(f"post:{post.pid}", "handle") == "visitor"


@pytest.mark.asyncio
async def test_invalid_actor_fails_before_any_write(creator, redis_client, forum) -> None:
    with pytest.raises(InvalidActorError):
        await creator.create(_reply(uid=None))

    assert await redis_client.hget("global", "nextPid") is None


@pytest.mark.asyncio
async def test_reply_to_missing_parent_fails(creator, redis_client, forum) -> None:
    with pytest.raises(InvalidParentReferenceError):
        await creator.create(_reply(to_pid=999))

    assert await redis_client.hget("global", "nextPid") is None


@pytest.mark.asyncio
async def test_reply_to_deleted_parent_depends_on_privilege(creator, redis_client, forum) -> None:
    await seed_post(redis_client, 50, deleted=True)

    with pytest.raises(InvalidParentReferenceError):
        await creator.create(_reply(to_pid=50))

    await redis_client.sadd(f"cid:3:privileges:{VIEW_DELETED}", 5)
    post = await creator.create(_reply(to_pid=50))
    assert post.to_pid == 50


@pytest.mark.asyncio
async def test_reply_edge_and_counter(creator, redis_client, forum) -> None:
    await seed_post(redis_client, 50, replies=2)

    post = await creator.create(_reply(to_pid=50))

    assert await redis_client.hget("post:50", "replies") == "3"
    assert await redis_client.zrange("pid:50:replies", 0, -1) == [str(post.pid)]
    assert await redis_client.hget(f"post:{post.pid}", "to_pid") == "50"


@pytest.mark.asyncio
async def test_zero_parent_creates_a_plain_post(creator, redis_client, forum) -> None:
    post = await creator.create(_reply(to_pid=0))

    assert post.pid == 1
    assert post.to_pid is None
    assert await redis_client.hget(f"post:{post.pid}", "to_pid") is None
    assert await redis_client.exists("pid:0:replies", "post:0") == 0


@pytest.mark.asyncio
async def test_concurrent_replies_share_a_small_connection_pool(
    creator, redis_client, forum
) -> None:
    await seed_post(redis_client, 50)
    await redis_client.sadd("uid:5:groups", "editors", "moderators")

    posts = await asyncio.gather(
        *(
            creator.create(_reply(content=f"see /assets/uploads/files/{i}.png", to_pid=50))
            for i in range(40)
        )
    )

    assert len({post.pid for post in posts}) == 40
    assert await redis_client.hget("global", "postCount") == "40"
    assert await redis_client.hget("post:50", "replies") == "40"
    assert await redis_client.zcard("pid:50:replies") == 40
    assert await redis_client.zcard("group:moderators:member:pids") == 40
    assert await redis_client.hget("category:3", "post_count") == "40"
    assert await redis_client.hget("user:5", "postcount") == "40"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "track, ip, expected",
    [(True, "10.0.0.1", "10.0.0.1"), (False, "10.0.0.1", None), (True, None, None)],
)
async def test_ip_stored_only_when_supplied_and_tracked(
    redis_client, emailer, tasks, hooks, forum, track, ip, expected
) -> None:
    creator = build_post_creator(
        redis_client,
        make_settings(TRACK_IP_PER_POST=track),
        emailer=emailer,
        tasks=tasks,
        hooks=hooks,
    )
    post = await creator.create(_reply(ip=ip))

    assert await redis_client.hget(f"post:{post.pid}", "ip") == expected
    assert post.ip == expected


@pytest.mark.asyncio
async def test_no_notification_for_own_topic(creator, emailer, tasks, forum) -> None:
    await creator.create(_reply(uid=forum["owner"]))
    await tasks.drain()

    emailer.send.assert_not_awaited()


@pytest.mark.asyncio
async def test_notification_failure_does_not_fail_creation(creator, emailer, tasks, forum) -> None:
    emailer.send.side_effect = RuntimeError("mail service down")

    post = await creator.create(_reply())
    await tasks.drain()

    assert post.pid == 1
    emailer.send.assert_awaited_once()


@pytest.mark.asyncio
async def test_is_main_is_attached_to_the_view(creator, redis_client, forum) -> None:
    post = await creator.create(_reply(is_main=True))

    assert post.is_main is True
    assert await redis_client.hget(f"post:{post.pid}", "is_main") is None


@pytest.mark.asyncio
async def test_filters_shape_stored_and_returned_posts(creator, hooks, redis_client, forum) -> None:
    seen_data: list[dict] = []

    @hooks.hook(HookEvent.FILTER_POST_CREATE)
    def shout(payload):
        seen_data.append(payload["data"])
        payload["post"]["content"] = payload["post"]["content"].upper()
        return payload

    @hooks.hook(HookEvent.FILTER_POST_GET)
    async def annotate(payload):
        payload["post"]["viewer"] = payload["uid"]
        return payload

    post = await creator.create(_reply())

    assert seen_data[0]["content"] == "hello"
    assert await redis_client.hget(f"post:{post.pid}", "content") == "HELLO"
    assert post.content == "HELLO"
    assert post.model_dump()["viewer"] == 5


@pytest.mark.asyncio
async def test_broken_create_filter_stops_before_write(creator, hooks, redis_client, forum) -> None:
    hooks.register(HookEvent.FILTER_POST_CREATE, lambda payload: None)

    with pytest.raises(HookError):
        await creator.create(_reply())

    assert await redis_client.exists("post:1") == 0


@pytest.mark.asyncio
async def test_save_actions_receive_a_copy(creator, hooks, tasks, forum) -> None:
    received: list[dict] = []

    @hooks.hook(HookEvent.ACTION_POST_SAVE)
    def tamper(payload):
        received.append(payload)
        payload["post"]["content"] = "tampered"

    @hooks.hook(HookEvent.ACTION_POST_SAVE)
    async def crash(payload):
        raise RuntimeError("plugin bug")

    post = await creator.create(_reply())
    await tasks.drain()

    assert len(received) == 1
    assert received[0]["post"]["pid"] == post.pid
    assert post.content == "hello"


@pytest.mark.asyncio
async def test_fan_out_failure_leaves_the_post_in_place(creator, redis_client, forum) -> None:
    creator.fanout.groups.on_new_post = AsyncMock(side_effect=ConnectionError("down"))

    with pytest.raises(FanOutError) as exc_info:
        await creator.create(_reply())

    assert exc_info.value.post_id == 1
    assert await redis_client.hget("post:1", "content") == "hello"
    assert await redis_client.hget("global", "postCount") == "1"
    assert await redis_client.zrange("tid:9:posts", 0, -1) == ["1"]
