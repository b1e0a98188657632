from __future__ import annotations

from flask import Blueprint, request, g
from marshmallow import ValidationError
from sqlalchemy import func

from api.errors import BadRequest, Conflict, InternalError, NotFound
from models import storage
from models.user import User
from models.subscription import Subscription
from models.schemas.user import (
    AccountUpdateSchema,
    UserOutSchema,
    ChannelProfileSchema,
    VideoOutSchema,
)
from utils.decorators import jwt_required
from utils.media import upload_request_file
from utils.payload import request_payload

from utils.responses import api_response

bp = Blueprint("users", __name__)

account_update_schema = AccountUpdateSchema()
user_out_schema = UserOutSchema()
channel_profile_schema = ChannelProfileSchema()
video_list_out_schema = VideoOutSchema(many=True)


@bp.get("/current-user")
@jwt_required()
def current_user():
    """
    Get current user info.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    return api_response(200, user_out_schema.dump(g.current_user), "Current user fetched successfully")


@bp.patch("/update-account")
@jwt_required()
def update_account():
    """
    Update full name and email of the current user.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             fullName: { type: string }
             email: { type: string }
    responses:
      200: { description: OK }
      400: { description: Missing field }
      409: { description: Email already in use }
    """
    try:
        data = account_update_schema.load(request_payload())
    except ValidationError as err:
        raise BadRequest("Full name and email are required", errors=err.messages)

    user = g.current_user
    session = storage.get_session()
    taken = session.query(User).filter(User.email == data["email"], User.id != user.id).first()
    if taken:
        raise Conflict("Email already in use")

    user.full_name = data["full_name"]
    user.email = data["email"]
    user.save()
    return api_response(200, user_out_schema.dump(user), "Account details updated successfully")


def _replace_image(field: str, attribute: str, label: str):
    file = request.files.get(field)
    if file is None or not file.filename:
        raise BadRequest(f"{label} file is required")

    url = upload_request_file(file)
    if not url:
        raise InternalError(f"Error while uploading {label.lower()}")

    user = g.current_user
    setattr(user, attribute, url)
    user.save()
    return user


@bp.patch("/avatar")
@jwt_required()
def update_avatar():
    """
    Replace the avatar image
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: avatar, type: file, required: true }
    responses:
      200: { description: OK }
      400: { description: Missing file }
    """
    user = _replace_image("avatar", "avatar", "Avatar")
    return api_response(200, user_out_schema.dump(user), "Avatar updated successfully")


@bp.patch("/cover-image")
@jwt_required()
def update_cover_image():
    """
    Replace the cover image
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: coverImage, type: file, required: true }
    responses:
      200: { description: OK }
      400: { description: Missing file }
    """
    user = _replace_image("coverImage", "cover_image", "Cover image")
    return api_response(200, user_out_schema.dump(user), "Cover image updated successfully")


@bp.get("/c/<username>")
@jwt_required()
def channel_profile(username: str):
    """
    Public channel profile with subscription counters.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - { in: path, name: username, type: string, required: true }
    responses:
      200: { description: OK }
      404: { description: Channel does not exist }
    """
    username = (username or "").strip().lower()
    if not username:
        raise BadRequest("Username is missing")

    session = storage.get_session()
    channel = session.query(User).filter(User.username == username).first()
    if not channel:
        raise NotFound("Channel does not exist")

    subscribers = session.query(func.count(Subscription.id)).filter(
        Subscription.channel_id == channel.id
    ).scalar()
    subscribed_to = session.query(func.count(Subscription.id)).filter(
        Subscription.subscriber_id == channel.id
    ).scalar()
    is_subscribed = session.query(Subscription.id).filter(
        Subscription.channel_id == channel.id,
        Subscription.subscriber_id == g.current_user.id,
    ).first() is not None

    profile = {
        "id": channel.id,
        "username": channel.username,
        "email": channel.email,
        "full_name": channel.full_name,
        "avatar": channel.avatar,
        "cover_image": channel.cover_image,
        "subscribers_count": subscribers,
        "channels_subscribed_to_count": subscribed_to,
        "is_subscribed": is_subscribed,
    }
    return api_response(200, channel_profile_schema.dump(profile), "User channel fetched successfully")


@bp.get("/history")
@jwt_required()
def watch_history():
    """
    Videos watched by the current user, most recent first.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200: { description: OK }
    """
    videos = g.current_user.watch_history
    return api_response(200, video_list_out_schema.dump(videos), "Watch history fetched successfully")
