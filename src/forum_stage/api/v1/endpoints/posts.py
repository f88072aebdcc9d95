# src/forum_stage/api/v1/endpoints/posts.py
"""Reply endpoints for the Forum Stage API."""

import logging

from fastapi import APIRouter, HTTPException, Request, status

from forum_stage.api.v1.dependencies import CurrentUidDep, PostCreatorDep
from forum_stage.core.errors import (
    FanOutError,
    InvalidActorError,
    InvalidParentReferenceError,
    PostCreationError,
)
from forum_stage.schemas.post import PostCreateRequest, PostSubmission, PostView

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/topics", tags=["posts"])


@router.post(
    "/{tid}/posts",
    response_model=PostView,
    status_code=status.HTTP_201_CREATED,
)
async def reply_to_topic(
    tid: int,
    payload: PostCreateRequest,
    request: Request,
    uid: CurrentUidDep,
    creator: PostCreatorDep,
) -> PostView:
    """Reply to a topic.

    Args:
        tid: Topic being replied to
        payload: Reply content and options
        request: Incoming request, used for the client address
        uid: Raw uid of the caller (guest when unauthenticated)
        creator: Post creation pipeline

    Returns:
        The created post

    Raises:
        HTTPException: 400 with a translatable code for invalid actors or
            parent posts, 500 when the post was stored but follow-up
            updates failed
    """
    submission = PostSubmission(
        uid=uid,
        tid=tid,
        content=payload.content,
        timestamp=payload.timestamp,
        to_pid=payload.to_pid,
        handle=payload.handle,
        anonymous=payload.anonymous,
        ip=request.client.host if request.client else None,
    )
    try:
        return await creator.create(submission)
    except (InvalidActorError, InvalidParentReferenceError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.code,
        ) from exc
    except FanOutError as exc:
        logger.warning("Post %d created with stale secondary state: %s", exc.post_id, exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=exc.code,
        ) from exc
    except PostCreationError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=exc.code,
        ) from exc
