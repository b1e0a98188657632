from marshmallow import Schema, fields, pre_load, validates, ValidationError, EXCLUDE


def _norm_lower(v):
    return v.strip().lower() if isinstance(v, str) else v


def _not_blank(value):
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Field may not be blank.")


class UserRegisterSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    full_name = fields.String(required=True, data_key="fullName", validate=_not_blank)
    username = fields.String(required=True, validate=_not_blank)
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True, validate=_not_blank)

    @pre_load
    def normalize(self, data, **kwargs):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for key in ("username", "email"):
            if key in data:
                data[key] = _norm_lower(data[key])
        if isinstance(data.get("fullName"), str):
            data["fullName"] = data["fullName"].strip()
        return data

    @validates("username")
    def validate_username(self, value, **kwargs):
        if len(value) > 64:
            raise ValidationError("Username must be at most 64 characters long.")


class UserLoginSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    username = fields.String(allow_none=True)
    email = fields.String(allow_none=True)
    password = fields.String(required=True, load_only=True, validate=_not_blank)

    @pre_load
    def normalize(self, data, **kwargs):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for key in ("username", "email"):
            if key in data:
                data[key] = _norm_lower(data[key]) or None
        return data


class ChangePasswordSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    old_password = fields.String(required=True, data_key="oldPassword", validate=_not_blank)
    new_password = fields.String(required=True, data_key="newPassword", validate=_not_blank)


class AccountUpdateSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    full_name = fields.String(required=True, data_key="fullName", validate=_not_blank)
    email = fields.Email(required=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "email" in data:
            data["email"] = _norm_lower(data["email"])
        return data


class UserOutSchema(Schema):
    """Public profile: never exposes password_hash or refresh_token."""
    id = fields.String()
    username = fields.String()
    email = fields.String()
    full_name = fields.String(data_key="fullName")
    avatar = fields.String()
    cover_image = fields.String(data_key="coverImage")
    created_at = fields.DateTime(data_key="createdAt")
    updated_at = fields.DateTime(data_key="updatedAt")


class OwnerOutSchema(Schema):
    username = fields.String()
    full_name = fields.String(data_key="fullName")
    avatar = fields.String()


class VideoOutSchema(Schema):
    id = fields.String()
    video_file = fields.String(data_key="videoFile")
    thumbnail = fields.String()
    title = fields.String()
    description = fields.String()
    duration = fields.Float()
    views = fields.Integer()
    owner = fields.Nested(OwnerOutSchema)
    created_at = fields.DateTime(data_key="createdAt")


class ChannelProfileSchema(Schema):
    id = fields.String()
    username = fields.String()
    email = fields.String()
    full_name = fields.String(data_key="fullName")
    avatar = fields.String()
    cover_image = fields.String(data_key="coverImage")
    subscribers_count = fields.Integer(data_key="subscribersCount")
    channels_subscribed_to_count = fields.Integer(data_key="channelsSubscribedToCount")
    is_subscribed = fields.Boolean(data_key="isSubscribed")
