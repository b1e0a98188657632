from __future__ import annotations
from functools import wraps
from flask import request, g
from api.errors import Unauthorized
from utils.tokens import verify_access_token
from models import storage
from models.user import User


def extract_access_token() -> str | None:
    """accessToken cookie first, then the Authorization: Bearer header."""
    token = request.cookies.get("accessToken")
    if token:
        return token
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        return auth.split(" ", 1)[1].strip() or None
    return None


def jwt_required():
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user_id = verify_access_token(extract_access_token())

            user = storage.get(User, user_id)
            if not user:
                raise Unauthorized("Invalid access token")
            g.current_user = user
            return fn(*args, **kwargs)

        return wrapper

    return decorator
