import io
from types import SimpleNamespace

from cloudinary.exceptions import Error as CloudinaryError
from werkzeug.datastructures import FileStorage

from utils.media import MediaUploader, stash_upload


def _temp_file(tmp_path, name="clip.png"):
    path = tmp_path / name
    path.write_bytes(b"bytes")
    return str(path)


def test_upload_returns_url_and_removes_file(tmp_path, cloudinary_upload):
    uploader = MediaUploader("demo", "key", "secret", folder="avatars")
    path = _temp_file(tmp_path)

    url = uploader.upload(path)

    assert url == "https://res.cloudinary.com/demo/image/upload/clip.png"
    assert not (tmp_path / "clip.png").exists()
    _, options = cloudinary_upload.call_args
    assert options["cloud_name"] == "demo"
    assert options["api_key"] == "key"
    assert options["api_secret"] == "secret"
    assert options["resource_type"] == "auto"
    assert options["folder"] == "avatars"


def test_upload_failure_returns_none_and_removes_file(tmp_path, cloudinary_upload):
    cloudinary_upload.side_effect = CloudinaryError("Invalid signature")
    path = _temp_file(tmp_path)

    assert MediaUploader("demo", "key", "secret").upload(path) is None
    assert not (tmp_path / "clip.png").exists()


def test_upload_without_path(cloudinary_upload):
    assert MediaUploader("demo", "key", "secret").upload(None) is None
    cloudinary_upload.assert_not_called()


def test_stash_upload_sanitizes_name(tmp_path):
    file = FileStorage(stream=io.BytesIO(b"data"), filename="../../etc/passwd")

    path = stash_upload(file, str(tmp_path / "tmp"))

    assert path.startswith(str(tmp_path / "tmp"))
    assert path.endswith("etc_passwd")
    with open(path, "rb") as fh:
        assert fh.read() == b"data"


def test_stash_upload_without_file(tmp_path):
    assert stash_upload(None, str(tmp_path)) is None
    assert stash_upload(FileStorage(stream=io.BytesIO(b""), filename=""), str(tmp_path)) is None


def test_same_name_in_same_millisecond_gets_distinct_paths(tmp_path, monkeypatch):
    monkeypatch.setattr("utils.media.time", SimpleNamespace(time=lambda: 1700000000.0))
    tmp_dir = str(tmp_path / "tmp")

    first = stash_upload(FileStorage(stream=io.BytesIO(b"alice-face"), filename="me.png"), tmp_dir)
    second = stash_upload(FileStorage(stream=io.BytesIO(b"bob-face"), filename="me.png"), tmp_dir)

    assert first != second
    with open(first, "rb") as fh:
        assert fh.read() == b"alice-face"
    with open(second, "rb") as fh:
        assert fh.read() == b"bob-face"
