# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import AsyncIterator, Iterator
from typing import Any
from unittest.mock import AsyncMock

import fakeredis
import pytest
import pytest_asyncio
from fakeredis import aioredis
from redis.asyncio import BlockingConnectionPool, Redis
from fastapi.testclient import TestClient
from jose import jwt

os.environ.setdefault("SECRET_KEY", "test-secret-key")

from forum_stage.core.settings import Settings
from forum_stage.repositories import RedisStore
from forum_stage.services import PluginHooks, PostCreator, TaskTracker, build_post_creator

OWNER_UID = 1
REPLIER_UID = 5
CATEGORY_ID = 3
THREAD_ID = 9
THREAD_TITLE = "My Topic!"
POOL_SIZE = 8


def make_settings(**overrides: Any) -> Settings:
    """Return settings isolated from the environment's optional toggles."""
    values: dict[str, Any] = {
        "SECRET_KEY": os.environ["SECRET_KEY"],
        "TRACK_IP_PER_POST": False,
        "EMAIL_API_URL": None,
    }
    values.update(overrides)
    return Settings(**values)


def make_redis(server: fakeredis.FakeServer, max_connections: int = POOL_SIZE) -> Redis:
    """Return an asyncio client on ``server`` with a small blocking connection pool."""
    pool = BlockingConnectionPool(
        connection_class=aioredis.FakeConnection,
        server=server,
        max_connections=max_connections,
        timeout=5,
        decode_responses=True,
    )
    return Redis.from_pool(pool)


@pytest.fixture()
def redis_server() -> fakeredis.FakeServer:
    return fakeredis.FakeServer()


@pytest_asyncio.fixture()
async def redis_client(redis_server: fakeredis.FakeServer) -> AsyncIterator[Redis]:
    client = make_redis(redis_server)
    try:
        yield client
    finally:
        await client.aclose()


@pytest.fixture()
def store(redis_client: Redis) -> RedisStore:
    return RedisStore(redis_client)


@pytest.fixture()
def test_settings() -> Settings:
    return make_settings()


@pytest.fixture()
def emailer() -> AsyncMock:
    """Notification delivery double; ``send`` succeeds unless told otherwise."""
    mailer = AsyncMock()
    mailer.send.return_value = None
    return mailer


@pytest.fixture()
def hooks() -> PluginHooks:
    return PluginHooks()


@pytest_asyncio.fixture()
async def tasks() -> AsyncIterator[TaskTracker]:
    """Background task tracker, drained before Redis is torn down."""
    tracker = TaskTracker()
    yield tracker
    await tracker.drain()


@pytest.fixture()
def creator(
    redis_client: Redis,
    test_settings: Settings,
    emailer: AsyncMock,
    tasks: TaskTracker,
    hooks: PluginHooks,
) -> PostCreator:
    return build_post_creator(
        redis_client,
        test_settings,
        emailer=emailer,
        tasks=tasks,
        hooks=hooks,
    )


@pytest_asyncio.fixture()
async def forum(redis_client: Redis) -> dict[str, int]:
    """Seed a category, a thread owned by user 1 and a second user."""
    await redis_client.hset(
        f"user:{OWNER_UID}",
        mapping={"uid": OWNER_UID, "username": "owner", "email": "owner@example.com"},
    )
    await redis_client.hset(
        f"user:{REPLIER_UID}",
        mapping={"uid": REPLIER_UID, "username": "replier", "email": "replier@example.com"},
    )
    await redis_client.hset(f"category:{CATEGORY_ID}", mapping={"cid": CATEGORY_ID, "name": "General"})
    await redis_client.hset(
        f"topic:{THREAD_ID}",
        mapping={
            "tid": THREAD_ID,
            "cid": CATEGORY_ID,
            "uid": OWNER_UID,
            "title": THREAD_TITLE,
            "pinned": 0,
        },
    )
    return {"tid": THREAD_ID, "cid": CATEGORY_ID, "owner": OWNER_UID, "replier": REPLIER_UID}


async def seed_post(
    client: Redis,
    pid: int,
    *,
    tid: int = THREAD_ID,
    uid: int = OWNER_UID,
    deleted: bool = False,
    replies: int = 0,
) -> None:
    """Write an existing post record directly, bypassing the pipeline."""
    await client.hset(
        f"post:{pid}",
        mapping={
            "pid": pid,
            "tid": tid,
            "uid": uid,
            "content": f"post {pid}",
            "timestamp": 1_000,
            "deleted": int(deleted),
            "replies": replies,
        },
    )


@pytest.fixture()
def sync_redis(redis_server: fakeredis.FakeServer) -> fakeredis.FakeRedis:
    """Synchronous view of the fake server for seeding data outside the event loop."""
    return fakeredis.FakeRedis(server=redis_server, decode_responses=True)


@pytest.fixture()
def client(
    redis_server: fakeredis.FakeServer,
    sync_redis: fakeredis.FakeRedis,
    emailer: AsyncMock,
) -> Iterator[TestClient]:
    """API client whose post pipeline runs against the fake Redis server."""
    from forum_stage.api.v1.dependencies import get_post_creator
    from forum_stage.main import app

    sync_redis.hset(
        f"user:{OWNER_UID}",
        mapping={"uid": OWNER_UID, "username": "owner", "email": "owner@example.com"},
    )
    sync_redis.hset(
        f"topic:{THREAD_ID}",
        mapping={"tid": THREAD_ID, "cid": CATEGORY_ID, "uid": OWNER_UID, "title": THREAD_TITLE},
    )

    def _get_post_creator_override() -> PostCreator:
        redis_client = make_redis(redis_server)
        return build_post_creator(
            redis_client,
            make_settings(),
            emailer=emailer,
            tasks=app.state.tasks,
            hooks=app.state.hooks,
        )

    app.dependency_overrides[get_post_creator] = _get_post_creator_override
    try:
        with TestClient(app, base_url="http://test") as test_client:
            yield test_client
    finally:
        app.dependency_overrides.pop(get_post_creator, None)


def auth_headers(uid: int | str) -> dict[str, str]:
    """Return bearer headers for ``uid`` signed with the configured secret."""
    from forum_stage.core.settings import settings

    token = jwt.encode({"sub": str(uid)}, settings.secret_key, algorithm=settings.jwt_algorithm)
    return {"Authorization": f"Bearer {token}"}
