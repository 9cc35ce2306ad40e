from typing import Optional

from fastapi import Header, HTTPException

from .constants import DEFAULT_USER_ID, MAX_USER_ID_LENGTH
from .models import UserPublic


def _get_current_user(x_user_id: Optional[str] = Header(default=None)) -> UserPublic:
    """Resolve the caller from the ``X-User-Id`` header; it only namespaces stored state."""
    if x_user_id is None:
        return UserPublic(username=DEFAULT_USER_ID)
    username = x_user_id.strip()
    if not username:
        raise HTTPException(status_code=400, detail="X-User-Id must not be blank.")
    if len(username) > MAX_USER_ID_LENGTH:
        raise HTTPException(status_code=400, detail="X-User-Id is too long.")
    return UserPublic(username=username)
