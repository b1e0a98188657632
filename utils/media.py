"""
Media uploads:
- stash_upload saves a multipart file into the temp upload directory
- MediaUploader pushes a stashed file to Cloudinary and always removes it

The uploader is created once by the app factory with explicit credentials
and lives in app.extensions["media_uploader"].
"""
from __future__ import annotations

import logging
import os
import time
import uuid
from typing import Optional

import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from flask import current_app
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

logger = logging.getLogger(__name__)


def stash_upload(file: Optional[FileStorage], tmp_dir: str) -> Optional[str]:
    """Write an incoming file to tmp_dir; None when no file was sent."""
    if file is None or not file.filename:
        return None
    os.makedirs(tmp_dir, exist_ok=True)
    name = secure_filename(file.filename) or "upload"
    path = os.path.join(tmp_dir, f"{int(time.time() * 1000)}-{uuid.uuid4().hex}-{name}")
    file.save(path)
    return path


def _discard(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass


class MediaUploader:
    def __init__(self, cloud_name: str, api_key: str, api_secret: str, folder: Optional[str] = None):
        self._credentials = {
            "cloud_name": cloud_name,
            "api_key": api_key,
            "api_secret": api_secret,
        }
        self.folder = folder

    def upload(self, local_path: Optional[str]) -> Optional[str]:
        """Upload and return the hosted URL, or None if there is nothing or it failed."""
        if not local_path:
            return None
        options = dict(self._credentials, resource_type="auto")
        if self.folder:
            options["folder"] = self.folder
        try:
            response = cloudinary.uploader.upload(local_path, **options)
            url = response.get("secure_url") or response.get("url")
            logger.info("Uploaded %s to %s", os.path.basename(local_path), url)
            return url
        except (CloudinaryError, OSError) as exc:
            logger.warning("Upload of %s failed: %s", os.path.basename(local_path), exc)
            return None
        finally:
            _discard(local_path)


def get_media_uploader() -> MediaUploader:
    return current_app.extensions["media_uploader"]


def upload_request_file(file: Optional[FileStorage]) -> Optional[str]:
    """Stash then upload one request file; the temp copy never outlives the call."""
    path = stash_upload(file, current_app.config["UPLOAD_TMP_DIR"])
    return get_media_uploader().upload(path)
