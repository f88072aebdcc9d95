"""Error taxonomy for the post creation pipeline.

Every error carries a translatable ``code`` that the API layer surfaces to
clients unchanged.
"""

from __future__ import annotations

from collections.abc import Sequence


class PostCreationError(RuntimeError):
    """Base exception raised while creating a post."""

    code = "[[error:post-create-failed]]"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.code)


class InvalidActorError(PostCreationError):
    """Raised when the acting identity is missing or cannot be parsed."""

    code = "[[error:invalid-uid]]"


class InvalidParentReferenceError(PostCreationError):
    """Raised when a reply targets a missing or inaccessible post."""

    code = "[[error:invalid-pid]]"

    def __init__(self, to_pid: int) -> None:
        self.to_pid = to_pid
        super().__init__(f"Parent post {to_pid} does not exist or cannot be viewed")


class FanOutError(PostCreationError):
    """Raised when one or more post-write updates failed.

    The post itself has been written; only secondary state may be stale.
    """

    code = "[[error:post-fanout-failed]]"

    def __init__(self, post_id: int, failures: Sequence[tuple[str, BaseException]]) -> None:
        self.post_id = post_id
        self.failures = list(failures)
        names = ", ".join(name for name, _ in self.failures)
        super().__init__(f"Post {post_id} was saved but fan-out failed for: {names}")


class HookError(PostCreationError):
    """Raised when a filter hook breaks the payload contract."""

    code = "[[error:plugin-filter-failed]]"


class NotificationError(RuntimeError):
    """Raised by emailers when a notification could not be delivered.

    Never propagated past the reply notifier.
    """
