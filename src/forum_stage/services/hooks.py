"""Extension points over the post lifecycle.

Plugins observe or transform posts at named points in the creation
pipeline. Two kinds of hook exist:

* **Filters** run in order and each one receives the previous one's output.
  The pipeline continues with whatever the last filter returned. Errors
  propagate to the caller.
* **Actions** are notifications. Every handler gets its own deep copy of the
  payload, they run concurrently, and their failures are logged and dropped.

Example
-------
::

    hooks = PluginHooks()

    @hooks.hook(HookEvent.FILTER_POST_CREATE)
    def strip_content(payload):
        payload["post"]["content"] = payload["post"]["content"].strip()
        return payload
"""

from __future__ import annotations

import asyncio
import copy
import inspect
import itertools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from forum_stage.core.errors import HookError

logger = logging.getLogger(__name__)

Payload = dict[str, Any]
Handler = Callable[[Payload], Payload | None | Awaitable[Payload | None]]

DEFAULT_PRIORITY = 10


class HookEvent(str, Enum):
    """Named extension points of the post pipeline."""

    FILTER_POST_CREATE = "filter:post.create"
    FILTER_POST_GET = "filter:post.get"
    ACTION_POST_SAVE = "action:post.save"

    @property
    def is_filter(self) -> bool:
        return self.value.startswith("filter:")


@dataclass(order=True)
class _Listener:
    priority: int
    sequence: int
    handler: Handler = field(compare=False)
    name: str = field(compare=False)


class PluginHooks:
    """Ordered registry of hook handlers per :class:`HookEvent`.

    Handlers with a lower priority run first; ties run in registration order.
    Both plain functions and coroutine functions are accepted.
    """

    def __init__(self) -> None:
        self._listeners: dict[HookEvent, list[_Listener]] = {}
        self._sequence = itertools.count()

    def register(
        self,
        event: HookEvent,
        handler: Handler,
        *,
        priority: int = DEFAULT_PRIORITY,
        name: str | None = None,
    ) -> None:
        """Attach ``handler`` to ``event``."""
        listener = _Listener(
            priority=priority,
            sequence=next(self._sequence),
            handler=handler,
            name=name or getattr(handler, "__qualname__", repr(handler)),
        )
        listeners = self._listeners.setdefault(event, [])
        listeners.append(listener)
        listeners.sort()
        logger.debug("Registered %s on %s (priority %d)", listener.name, event.value, priority)

    def hook(
        self, event: HookEvent, *, priority: int = DEFAULT_PRIORITY
    ) -> Callable[[Handler], Handler]:
        """Return a decorator that registers the decorated function on ``event``."""

        def decorator(handler: Handler) -> Handler:
            self.register(event, handler, priority=priority)
            return handler

        return decorator

    def unregister(self, event: HookEvent, handler: Handler) -> bool:
        """Detach ``handler`` from ``event``; return False if it was not attached."""
        listeners = self._listeners.get(event, [])
        for listener in listeners:
            if listener.handler is handler:
                listeners.remove(listener)
                return True
        return False

    def has_listeners(self, event: HookEvent) -> bool:
        return bool(self._listeners.get(event))

    def listeners(self, event: HookEvent) -> list[Handler]:
        """Return the handlers of ``event`` in invocation order."""
        return [listener.handler for listener in self._listeners.get(event, [])]

    async def apply_filters(self, event: HookEvent, payload: Payload) -> Payload:
        """Thread ``payload`` through every filter registered on ``event``.

        Raises:
            ValueError: If ``event`` is not a filter event.
            HookError: If a filter returns nothing.
        """
        if not event.is_filter:
            raise ValueError(f"{event.value} is not a filter hook")

        for listener in list(self._listeners.get(event, [])):
            result = listener.handler(payload)
            if inspect.isawaitable(result):
                result = await result
            if result is None:
                raise HookError(f"Filter {listener.name} on {event.value} returned no payload")
            payload = result
        return payload

    async def fire_actions(self, event: HookEvent, payload: Payload) -> None:
        """Notify every action handler of ``event``; failures are only logged."""
        if event.is_filter:
            raise ValueError(f"{event.value} is not an action hook")

        listeners = list(self._listeners.get(event, []))
        if not listeners:
            return
        results = await asyncio.gather(
            *(self._run_action(listener, copy.deepcopy(payload)) for listener in listeners),
            return_exceptions=True,
        )
        for listener, result in zip(listeners, results, strict=True):
            if isinstance(result, Exception):
                logger.error(
                    "Action %s on %s failed",
                    listener.name,
                    event.value,
                    exc_info=result,
                )

    @staticmethod
    async def _run_action(listener: _Listener, payload: Payload) -> None:
        result = listener.handler(payload)
        if inspect.isawaitable(result):
            await result
