"""
Pydantic schemas for pipeline input, API requests and returned post views.
"""

from .post import PostCreateRequest, PostSubmission, PostView

__all__ = ["PostCreateRequest", "PostSubmission", "PostView"]
