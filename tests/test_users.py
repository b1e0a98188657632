import os

from conftest import register_user, login_user, bearer, get_user, image
from models import storage
from models.subscription import Subscription
from models.user import User
from models.video import Video


def test_current_user_returns_public_profile(client, logged_in):
    resp = client.get("/api/v1/users/current-user", headers=bearer(logged_in["accessToken"]))

    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["username"] == "alice"
    assert data["fullName"] == "Alice Liddell"
    assert set(data) == {"id", "username", "email", "fullName", "avatar", "coverImage", "createdAt", "updatedAt"}


def test_current_user_requires_session(client):
    resp = client.get("/api/v1/users/current-user")
    assert resp.status_code == 401
    assert resp.get_json()["success"] is False


def test_update_account(client, logged_in):
    resp = client.patch(
        "/api/v1/users/update-account",
        json={"fullName": "Alice Pleasance", "email": "Alice.P@Example.com"},
        headers=bearer(logged_in["accessToken"]),
    )

    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["fullName"] == "Alice Pleasance"
    assert data["email"] == "alice.p@example.com"
    assert get_user("alice").email == "alice.p@example.com"


def test_update_account_requires_both_fields(client, logged_in):
    resp = client.patch(
        "/api/v1/users/update-account",
        json={"fullName": "Alice"},
        headers=bearer(logged_in["accessToken"]),
    )
    assert resp.status_code == 400


def test_update_account_email_taken(client, logged_in):
    register_user(client, username="bob")
    resp = client.patch(
        "/api/v1/users/update-account",
        json={"fullName": "Alice", "email": "bob@example.com"},
        headers=bearer(logged_in["accessToken"]),
    )
    assert resp.status_code == 409


def test_update_avatar(client, logged_in, upload_dir):
    resp = client.patch(
        "/api/v1/users/avatar",
        data={"avatar": image("new-face.png")},
        content_type="multipart/form-data",
        headers=bearer(logged_in["accessToken"]),
    )

    assert resp.status_code == 200
    assert resp.get_json()["data"]["avatar"].endswith("new-face.png")
    assert get_user("alice").avatar.endswith("new-face.png")
    assert os.listdir(upload_dir) == []


def test_update_avatar_requires_file(client, logged_in):
    resp = client.patch("/api/v1/users/avatar", data={}, headers=bearer(logged_in["accessToken"]))
    assert resp.status_code == 400


def test_update_cover_image_does_not_touch_avatar(client, logged_in):
    avatar_before = get_user("alice").avatar
    resp = client.patch(
        "/api/v1/users/cover-image",
        data={"coverImage": image("banner.png")},
        content_type="multipart/form-data",
        headers=bearer(logged_in["accessToken"]),
    )

    assert resp.status_code == 200
    user = get_user("alice")
    assert user.cover_image.endswith("banner.png")
    assert user.avatar == avatar_before


def test_update_cover_image_upload_failure(client, logged_in, cloudinary_upload, upload_dir):
    cloudinary_upload.side_effect = OSError("timeout")
    resp = client.patch(
        "/api/v1/users/cover-image",
        data={"coverImage": image("banner.png")},
        content_type="multipart/form-data",
        headers=bearer(logged_in["accessToken"]),
    )

    assert resp.status_code == 500
    assert get_user("alice").cover_image == ""
    assert os.listdir(upload_dir) == []


def test_channel_profile_counts_subscriptions(client, logged_in):
    register_user(client, username="bob")
    register_user(client, username="carol")
    alice, bob, carol = get_user("alice"), get_user("bob"), get_user("carol")

    for subscriber, channel in [(alice, bob), (carol, bob), (bob, carol)]:
        storage.new(Subscription(subscriber_id=subscriber.id, channel_id=channel.id))
    storage.save()

    resp = client.get("/api/v1/users/c/Bob", headers=bearer(logged_in["accessToken"]))

    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["username"] == "bob"
    assert data["subscribersCount"] == 2
    assert data["channelsSubscribedToCount"] == 1
    assert data["isSubscribed"] is True


def test_channel_profile_unknown_channel(client, logged_in):
    resp = client.get("/api/v1/users/c/ghost", headers=bearer(logged_in["accessToken"]))
    assert resp.status_code == 404


def test_watch_history_lists_videos_with_owner(client, logged_in):
    register_user(client, username="bob", full_name="Bob Builder")
    bob = get_user("bob")
    video = Video(
        video_file="https://res.cloudinary.com/demo/video/upload/intro.mp4",
        thumbnail="https://res.cloudinary.com/demo/image/upload/intro.png",
        title="Intro",
        description="First upload",
        duration=42.5,
        owner_id=bob.id,
    )
    storage.new(video)
    alice = storage.get_session().query(User).filter_by(username="alice").first()
    alice.watch_history.append(video)
    storage.save()

    resp = client.get("/api/v1/users/history", headers=bearer(logged_in["accessToken"]))

    assert resp.status_code == 200
    history = resp.get_json()["data"]
    assert len(history) == 1
    assert history[0]["title"] == "Intro"
    assert history[0]["owner"] == {
        "username": "bob",
        "fullName": "Bob Builder",
        "avatar": bob.avatar,
    }


def test_watch_history_empty(client):
    register_user(client)
    tokens = login_user(client)
    resp = client.get("/api/v1/users/history", headers=bearer(tokens["accessToken"]))
    assert resp.status_code == 200
    assert resp.get_json()["data"] == []


def test_update_account_rejects_non_object_body(client, logged_in):
    for body in (["x"], "fullName", 42):
        resp = client.patch(
            "/api/v1/users/update-account",
            json=body,
            headers=bearer(logged_in["accessToken"]),
        )
        assert resp.status_code == 400
        assert resp.get_json()["success"] is False
