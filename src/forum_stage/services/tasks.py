"""Tracking for fire-and-forget background work.

Side channels such as reply emails and ``action:*`` hooks run detached from
the request that spawned them. The tracker keeps a strong reference to each
task, logs failures, and lets shutdown code wait for stragglers.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

logger = logging.getLogger(__name__)


class TaskTracker:
    """Owns background tasks until they finish."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    def spawn(self, coro: Coroutine[Any, Any, Any], *, name: str) -> asyncio.Task[Any]:
        """Schedule ``coro`` and return its task.

        The result is discarded; an exception is logged and goes no further.
        """
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.debug("Background task %s was cancelled", task.get_name())
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background task %s failed", task.get_name(), exc_info=exc)

    @property
    def pending(self) -> int:
        """Number of tasks that have not finished yet."""
        return sum(1 for task in self._tasks if not task.done())

    async def drain(self) -> None:
        """Wait until every tracked task, including ones spawned meanwhile, is done."""
        while True:
            running = [task for task in self._tasks if not task.done()]
            if not running:
                return
            await asyncio.gather(*running, return_exceptions=True)
