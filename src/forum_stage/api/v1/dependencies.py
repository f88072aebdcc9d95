"""Shared API dependencies for authentication and pipeline wiring."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from forum_stage.core.settings import settings
from forum_stage.models.identity import GUEST_UID
from forum_stage.services.post_service import PostCreator, build_post_creator

# Requests without a bearer token post as the guest identity
bearer_scheme = HTTPBearer(auto_error=False)


def get_current_uid(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> str:
    """Return the raw uid carried by the caller's JWT, or the guest uid.

    The value is parsed by the post pipeline, which reports malformed ids
    with a translatable error.

    Raises:
        HTTPException: If a token is present but invalid.
    """
    if credentials is None:
        return str(GUEST_UID)
    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from err

    subject = payload.get("sub")
    if subject is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )
    return str(subject)


def get_post_creator(request: Request) -> PostCreator:
    """Build a post creator from the resources held on application state."""
    state = request.app.state
    return build_post_creator(
        state.redis,
        settings,
        emailer=state.emailer,
        tasks=state.tasks,
        hooks=state.hooks,
    )


CurrentUidDep = Annotated[str, Depends(get_current_uid)]
PostCreatorDep = Annotated[PostCreator, Depends(get_post_creator)]
