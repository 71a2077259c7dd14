from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import g, request

from app.tourcms.errors import ApiError, unauthorized
from app.tourcms.models import User
from app.tourcms.utils import parse_bool

ADMIN_ROLE = "admin"


def user_is_admin(user: User | None) -> bool:
    return bool(user and user.is_active and user.role == ADMIN_ROLE)


def current_user() -> User:
    """The signed-in user; only call behind ``require_admin``."""
    u = getattr(g, "current_user", None)
    if not u:
        raise unauthorized()
    return u


def wants_admin_view() -> bool:
    """``?admin=true`` widens public lists to hidden rows, for admins only."""
    if not parse_bool(request.args.get("admin"), False):
        return False
    return user_is_admin(getattr(g, "current_user", None))


def require_admin(fn: Callable[..., Any]) -> Callable[..., Any]:
    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        user: User | None = getattr(g, "current_user", None)
        # No session -> 401 (the API has no login page to redirect to).
        if not user or not user.is_active:
            raise unauthorized()
        if user.role != ADMIN_ROLE:
            raise ApiError(403, "Forbidden", "FORBIDDEN")
        return fn(*args, **kwargs)

    return wrapped
