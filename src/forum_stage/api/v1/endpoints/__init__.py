"""Endpoint routers for API v1."""

from .posts import router as posts_router

__all__ = ["posts_router"]
