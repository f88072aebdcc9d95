"""Post-related Pydantic schemas."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PostSubmission(BaseModel):
    """Raw reply submission handed to the post creation pipeline.

    ``uid`` is kept unparsed here; identity parsing happens during
    normalization so that a missing actor surfaces as a translatable error.
    """

    uid: Any = None
    tid: int
    content: str
    timestamp: int | None = Field(None, description="Epoch milliseconds")
    is_main: bool = False
    to_pid: int | None = Field(None, description="Post being replied to")
    ip: str | None = None
    handle: str | None = Field(None, description="Display handle for guest posts")
    anonymous: bool = False

    @field_validator("content", mode="before")
    @classmethod
    def _coerce_content(cls, value: Any) -> str:
        if isinstance(value, bytes | bytearray):
            return bytes(value).decode("utf-8", errors="replace")
        return str(value)


class PostView(BaseModel):
    """Post returned to callers once every side effect has settled.

    Filter hooks may attach extra fields, which are preserved.
    """

    pid: int
    uid: int
    tid: int
    content: str
    timestamp: int
    to_pid: int | None = None
    ip: str | None = None
    handle: str | None = None
    cid: int | None = None
    is_main: bool = False

    model_config = ConfigDict(extra="allow")


class PostCreateRequest(BaseModel):
    """Schema for replying to a topic through the API."""

    content: str = Field(..., min_length=1, max_length=32_768, description="Reply content")
    to_pid: int | None = Field(None, description="Post being replied to")
    anonymous: bool = Field(False, description="Hide the author's identity")
    handle: str | None = Field(None, max_length=64, description="Guest display handle")
    timestamp: int | None = Field(None, description="Epoch milliseconds")
