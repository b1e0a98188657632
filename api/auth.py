"""
Authentication blueprint (mounted under /api/v1/users):
- POST /register         multipart, avatar required, coverImage optional
- POST /login            username or email + password, sets cookies
- POST /logout           clears the stored refresh token and the cookies
- POST /refresh-token    refresh token rotation
- POST /change-password

Passwords are hashed with argon2; access/refresh tokens are JWTs signed with
distinct secrets, and the refresh token is stored on the user record so that
logout and rotation revoke it.
"""
from __future__ import annotations

import logging
from flask import Blueprint, request, g
from marshmallow import ValidationError
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from api.errors import BadRequest, Conflict, InternalError, NotFound, Unauthorized
from models import storage
from models.user import User
from models.schemas.user import (
    UserRegisterSchema,
    UserLoginSchema,
    ChangePasswordSchema,
    UserOutSchema,
)
from utils.decorators import jwt_required
from utils.media import upload_request_file
from utils.payload import request_payload
from utils.responses import api_response, set_auth_cookies, clear_auth_cookies
from utils.security import hash_password, verify_password
from utils.tokens import issue_token_pair, rotate_refresh_token, revoke_refresh_token

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__)

user_register_schema = UserRegisterSchema()
user_login_schema = UserLoginSchema()
change_password_schema = ChangePasswordSchema()
user_out_schema = UserOutSchema()


def find_user_by_username_or_email(username: str | None, email: str | None) -> User | None:
    clauses = []
    if username:
        clauses.append(User.username == username)
    if email:
        clauses.append(User.email == email)
    if not clauses:
        return None
    session = storage.get_session()
    return session.query(User).filter(or_(*clauses)).first()


@bp.post("/register")
def register():
    """
    Register a new user.
    ---
    tags:
      - Auth
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: fullName, type: string, required: true }
      - { in: formData, name: username, type: string, required: true }
      - { in: formData, name: email, type: string, required: true }
      - { in: formData, name: password, type: string, required: true }
      - { in: formData, name: avatar, type: file, required: true }
      - { in: formData, name: coverImage, type: file, required: false }
    responses:
      201:
        description: Created
      400:
        description: Missing field or avatar
      409:
        description: Username or email already exists
    """
    try:
        data = user_register_schema.load(request.form.to_dict())
    except ValidationError as err:
        raise BadRequest("All fields are required", errors=err.messages)

    if find_user_by_username_or_email(data["username"], data["email"]):
        raise Conflict("Username or email already exists")

    avatar_file = request.files.get("avatar")
    if avatar_file is None or not avatar_file.filename:
        raise BadRequest("Avatar is required")

    avatar_url = upload_request_file(avatar_file)
    if not avatar_url:
        raise InternalError("Avatar upload failed")

    cover_file = request.files.get("coverImage")
    cover_url = ""
    if cover_file is not None and cover_file.filename:
        cover_url = upload_request_file(cover_file)
        if not cover_url:
            raise InternalError("Cover image upload failed")

    user = User(
        full_name=data["full_name"],
        username=data["username"],
        email=data["email"],
        password_hash=hash_password(data["password"]),
        avatar=avatar_url,
        cover_image=cover_url,
    )
    storage.new(user)
    try:
        storage.save()
    except IntegrityError:
        # lost a race against a concurrent registration
        raise Conflict("Username or email already exists")

    logger.info("Registered user %s", user.id)
    return api_response(201, user_out_schema.dump(user), "User registered successfully")


@bp.post("/login")
def login():
    """
    Login: returns the user and both tokens, and sets them as cookies
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             username: { type: string }
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Invalid credentials
      404:
        description: User does not exist
    """
    try:
        data = user_login_schema.load(request_payload())
    except ValidationError as err:
        raise BadRequest("Password is required", errors=err.messages)
    # presence is judged after normalisation so blank values count as missing
    if not (data.get("username") or data.get("email")):
        raise BadRequest("Username or email is required")

    user = find_user_by_username_or_email(data.get("username"), data.get("email"))
    if not user:
        raise NotFound("User does not exist")

    if not verify_password(data["password"], user.password_hash):
        raise Unauthorized("Invalid user credentials")

    access_token, refresh_token = issue_token_pair(user.id)

    resp = api_response(
        200,
        {
            "user": user_out_schema.dump(user),
            "accessToken": access_token,
            "refreshToken": refresh_token,
        },
        "User logged in successfully",
    )
    return set_auth_cookies(resp, access_token, refresh_token)


@bp.post("/logout")
@jwt_required()
def logout():
    """
    Logout: revokes the stored refresh token and clears the cookies
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: Logged out
      401:
        description: Unauthorized
    """
    revoke_refresh_token(g.current_user.id)
    resp = api_response(200, {}, "User logged out successfully")
    return clear_auth_cookies(resp)


@bp.post("/refresh-token")
def refresh_token():
    """
    Exchange a refresh token (cookie or body) for a new token pair.
    The presented token is consumed: replaying it afterwards fails with 401.
    ---
    tags:
      - Auth
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refreshToken: { type: string }
    responses:
      200:
        description: New tokens
      401:
        description: Missing, invalid or already used refresh token
    """
    incoming = request.cookies.get("refreshToken") or request_payload().get("refreshToken")
    access_token, new_refresh_token = rotate_refresh_token(incoming)

    resp = api_response(
        200,
        {"accessToken": access_token, "refreshToken": new_refresh_token},
        "Access token refreshed",
    )
    return set_auth_cookies(resp, access_token, new_refresh_token)


@bp.post("/change-password")
@jwt_required()
def change_password():
    """
    Change the current user's password
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             oldPassword: { type: string }
             newPassword: { type: string }
    responses:
      200:
        description: Password changed
      400:
        description: Old password is wrong
    """
    try:
        data = change_password_schema.load(request_payload())
    except ValidationError as err:
        raise BadRequest("Old and new password are required", errors=err.messages)

    user = g.current_user
    if not verify_password(data["old_password"], user.password_hash):
        raise BadRequest("Invalid old password")

    user.password_hash = hash_password(data["new_password"])
    user.save()
    return api_response(200, {}, "Password changed successfully")
