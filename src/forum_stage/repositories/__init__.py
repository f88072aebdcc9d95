"""Redis-backed data access for forum entities."""

from .category_repo import CategoryRepository
from .group_repo import GroupRepository
from .post_repo import PostRepository
from .store import RedisStore
from .topic_repo import TopicRepository
from .upload_repo import UploadSync
from .user_repo import UserRepository

__all__ = [
    "CategoryRepository",
    "GroupRepository",
    "PostRepository",
    "RedisStore",
    "TopicRepository",
    "UploadSync",
    "UserRepository",
]
