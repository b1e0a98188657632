"""
security helpers:
- Argon2 password hashing via argon2-cffi
- JWT creation/verification via PyJWT (access and refresh use distinct secrets)
- JTI generation for token identifiers
"""
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Optional

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import VerifyMismatchError, VerificationError, InvalidHashError

from flask import current_app

ph = PasswordHasher()

_SECRET_KEYS = {
    "access": "ACCESS_TOKEN_SECRET",
    "refresh": "REFRESH_TOKEN_SECRET",
}


class TokenError(Exception):
    """Raised when a JWT cannot be trusted (bad signature, expired, wrong type)."""


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """ Verify a plaintext password using argon2
    """
    try:
        return ph.verify(password_hash, password)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _secret(token_type: str) -> str:
    return current_app.config[_SECRET_KEYS[token_type]]


def _encode(token_type: str, subject: str, lifetime: timedelta, claims: Optional[Dict[str, Any]] = None) -> str:
    now = _now()
    payload = {
        "iss": current_app.config.get("JWT_ISSUER", "videotube-accounts-api"),
        "sub": str(subject),
        "iat": int(now.timestamp()),
        "exp": int((now + lifetime).timestamp()),
        "type": token_type,
        "jti": generate_jti(),
    }
    payload.update(claims or {})
    return jwt.encode(payload, _secret(token_type), algorithm=current_app.config["JWT_ALGORITHM"])


def create_access_token(subject: str, claims: Optional[Dict[str, Any]] = None,
                        expires_in: Optional[timedelta] = None) -> str:
    """Short-lived, self-contained token; never persisted."""
    lifetime = expires_in if expires_in is not None else current_app.config["ACCESS_TOKEN_EXPIRES"]
    return _encode("access", subject, lifetime, claims)


def create_refresh_token(subject: str, expires_in: Optional[timedelta] = None) -> str:
    """Long-lived token; the caller stores it on the user record."""
    lifetime = expires_in if expires_in is not None else current_app.config["REFRESH_TOKEN_EXPIRES"]
    return _encode("refresh", subject, lifetime)


def decode_token(token: str, expected_type: str = "access") -> Dict[str, Any]:
    """
    Decode and validate a JWT. Raises TokenError on invalid signature/expired jwt.
    expected_type must be "access" or "refresh"; it also selects the secret.
    """
    try:
        decoded = jwt.decode(
            token,
            _secret(expected_type),
            algorithms=[current_app.config["JWT_ALGORITHM"]],
            issuer=current_app.config.get("JWT_ISSUER", "videotube-accounts-api"),
            options={"require": ["exp", "iss", "sub", "type"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token expired")
    except jwt.InvalidTokenError as exc:
        raise TokenError(f"Invalid token: {exc}")

    if decoded.get("type") != expected_type:
        raise TokenError("Wrong token type")
    return decoded
