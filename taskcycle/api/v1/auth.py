"""Request owner resolution."""
from typing import Optional
from fastapi import Header

from taskcycle.core import settings
from taskcycle.exceptions import ValidationError

MAX_USER_ID_LENGTH = 128


def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """Owner every query is scoped to: the ``X-User-Id`` header, else the configured default."""
    if x_user_id is None:
        return settings.default_user_id
    user_id = x_user_id.strip()
    if not user_id or len(user_id) > MAX_USER_ID_LENGTH:
        raise ValidationError("Invalid X-User-Id header")
    return user_id
