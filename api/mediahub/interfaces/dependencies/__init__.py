"""依赖模块"""

from .auth import (
    Actor,
    CurrentUser,
    get_current_user,
    resolve_actor_from_access_token,
)

__all__ = [
    "Actor",
    "CurrentUser",
    "get_current_user",
    "resolve_actor_from_access_token",
]
