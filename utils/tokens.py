"""
Access/refresh token lifecycle.

- issue_token_pair: mint both tokens and store the refresh token on the user
- verify_access_token: signature + expiry check, returns the user id
- rotate_refresh_token: exchange a stored refresh token for a new pair
- revoke_refresh_token: clear the stored refresh token (logout)

Only one refresh token is live per user: issuing a pair overwrites the
previous value, so a new login or refresh ends every other session.
"""
from __future__ import annotations

import logging
from typing import Tuple

from sqlalchemy.exc import SQLAlchemyError

from api.errors import InternalError, Unauthorized
from models import storage
from models.user import User
from utils.security import (
    TokenError,
    create_access_token,
    create_refresh_token,
    decode_token,
)

logger = logging.getLogger(__name__)


def issue_token_pair(user_id: str) -> Tuple[str, str]:
    user = storage.get(User, user_id)
    if not user:
        raise InternalError("Error generating tokens")

    access_token = create_access_token(
        subject=user.id,
        claims={"username": user.username, "email": user.email, "full_name": user.full_name},
    )
    refresh_token = create_refresh_token(subject=user.id)

    # narrow write: only the refresh token column changes
    user.refresh_token = refresh_token
    try:
        user.save()
    except SQLAlchemyError as exc:
        logger.error("Could not persist refresh token for user %s: %s", user_id, exc)
        raise InternalError("Error generating tokens")
    return access_token, refresh_token


def verify_access_token(token: str | None) -> str:
    if not token:
        raise Unauthorized("Unauthorized request")
    try:
        decoded = decode_token(token, expected_type="access")
    except TokenError as exc:
        raise Unauthorized(str(exc))
    return decoded["sub"]


def rotate_refresh_token(presented: str | None) -> Tuple[str, str]:
    if not presented:
        raise Unauthorized("Unauthorized request")
    try:
        decoded = decode_token(presented, expected_type="refresh")
    except TokenError as exc:
        raise Unauthorized(str(exc))

    user = storage.get(User, decoded["sub"])
    if not user:
        raise Unauthorized("Invalid refresh token")

    if user.refresh_token is None or presented != user.refresh_token:
        logger.warning("Stale refresh token presented for user %s", user.id)
        raise Unauthorized("Refresh token expired or used")

    return issue_token_pair(user.id)


def revoke_refresh_token(user_id: str) -> None:
    user = storage.get(User, user_id)
    if not user or user.refresh_token is None:
        return
    user.refresh_token = None
    try:
        user.save()
    except SQLAlchemyError as exc:
        logger.error("Could not revoke refresh token for user %s: %s", user_id, exc)
        raise InternalError("Error revoking session")
    logger.info("Refresh token revoked for user %s", user_id)
