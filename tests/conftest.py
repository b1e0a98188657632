import io
import os

# Must be set before the models package builds its engine
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["APP_ENV"] = "test"

import pytest
from unittest.mock import MagicMock

from api import create_app
from models import storage
from models.base_model import Base
from models.user import User
from utils.media import MediaUploader

PASSWORD = "s3cret-pass"


def pytest_configure(config):
    config.addinivalue_line("markers", "auth: mark test as authentication-related")


@pytest.fixture
def cloudinary_upload(monkeypatch):
    """Stands in for the Cloudinary SDK call; returns a URL built from the file name."""
    mock = MagicMock(
        side_effect=lambda path, **options: {
            "secure_url": f"https://res.cloudinary.com/demo/image/upload/{os.path.basename(path)}"
        }
    )
    monkeypatch.setattr("utils.media.cloudinary.uploader.upload", mock)
    return mock


@pytest.fixture
def upload_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def app(upload_dir, cloudinary_upload):
    app = create_app("testing", media_uploader=MediaUploader("demo", "key", "secret"))
    app.config.update(UPLOAD_TMP_DIR=str(upload_dir))

    storage.close()
    engine = storage.get_engine()
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)

    yield app

    storage.close()


@pytest.fixture
def client(app):
    # cookies are passed explicitly so each request states which token it uses
    return app.test_client(use_cookies=False)


def image(name="avatar.png"):
    return (io.BytesIO(b"\x89PNG fake image bytes"), name)


def register_user(client, username="alice", email=None, password=PASSWORD, full_name="Alice Liddell",
                  avatar=True, cover=False):
    data = {
        "fullName": full_name,
        "username": username,
        "email": email or f"{username}@example.com",
        "password": password,
    }
    if avatar:
        data["avatar"] = image("avatar.png")
    if cover:
        data["coverImage"] = image("cover.png")
    return client.post("/api/v1/users/register", data=data, content_type="multipart/form-data")


def login_user(client, username="alice", password=PASSWORD):
    resp = client.post("/api/v1/users/login", json={"username": username, "password": password})
    assert resp.status_code == 200, resp.get_json()
    return resp.get_json()["data"]


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


def get_user(username):
    storage.close()
    return storage.get_session().query(User).filter(User.username == username).first()


def user_count():
    storage.close()
    return storage.get_session().query(User).count()


@pytest.fixture
def logged_in(client):
    """Registered and logged-in user 'alice'; returns the login payload."""
    assert register_user(client).status_code == 201
    return login_user(client)
