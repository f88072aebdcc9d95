"""Business logic services for the Forum Stage application."""

from .fanout import FanOutCoordinator
from .hooks import HookEvent, PluginHooks
from .notifications import ReplyNotifier
from .post_service import PostCreator, build_post_creator
from .privileges import PrivilegeService
from .tasks import TaskTracker
from .validation import PostValidator

__all__ = [
    "FanOutCoordinator",
    "HookEvent",
    "PluginHooks",
    "PostCreator",
    "PostValidator",
    "PrivilegeService",
    "ReplyNotifier",
    "TaskTracker",
    "build_post_creator",
]
