"""
Asset host for avatars, cover images, thumbnails and video files.

Files are kept on local disk under ``UPLOAD_DIR`` and served through the
``/static`` mount in ``main``. Incoming uploads are first staged in
``TEMP_DIR``; the staged copy is always removed, whatever happens next.
"""

import logging
import os
import shutil
from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple

from bson import ObjectId
from fastapi import UploadFile
from pydantic import BaseModel

from config import settings
from errors import BadRequestError

logger = logging.getLogger(__name__)

IMAGE = "image"
VIDEO = "video"

IMAGE_FORMATS = ("jpg", "jpeg", "png", "bmp", "tiff", "webp")
VIDEO_FORMATS = ("mp4", "avi", "mov", "wmv", "mkv", "flv", "webm", "mpg", "mpeg", "3gp", "ts")

ALLOWED_FORMATS = {IMAGE: IMAGE_FORMATS, VIDEO: VIDEO_FORMATS}


class Asset(BaseModel):
    url: str
    public_id: str


def file_extension(filename: Optional[str]) -> str:
    return os.path.splitext(filename or "")[1].lstrip(".").lower()


def validate_format(filename: Optional[str], resource_kind: str) -> str:
    ext = file_extension(filename)
    allowed = ALLOWED_FORMATS[resource_kind]
    if ext not in allowed:
        raise BadRequestError(
            f"Invalid file format: {ext or 'none'}. Only {resource_kind} formats are allowed."
        )
    return ext


class LocalAssetHost:
    def __init__(self, upload_dir: str, url_prefix: str, temp_dir: Optional[str] = None):
        self.upload_dir = os.path.abspath(upload_dir)
        self.url_prefix = url_prefix.rstrip("/")
        self.temp_dir = temp_dir or settings.TEMP_DIR

    def _path_for(self, public_id: str) -> str:
        path = os.path.abspath(os.path.join(self.upload_dir, public_id))
        if os.path.commonpath([path, self.upload_dir]) != self.upload_dir:
            raise BadRequestError("Invalid asset id")
        return path

    def upload(self, local_path: str, resource_kind: str) -> Asset:
        ext = file_extension(local_path)
        folder = f"{resource_kind}s"
        filename = f"{ObjectId()}.{ext}" if ext else str(ObjectId())
        public_id = f"{folder}/{filename}"
        target = self._path_for(public_id)
        os.makedirs(os.path.dirname(target), exist_ok=True)
        shutil.move(local_path, target)
        logger.info("Stored %s asset %s", resource_kind, public_id)
        return Asset(url=f"{self.url_prefix}/{public_id}", public_id=public_id)

    def delete(self, public_id: Optional[str], resource_kind: str = IMAGE) -> bool:
        if not public_id:
            return False
        path = self._path_for(public_id)
        if not os.path.exists(path):
            logger.warning("Asset %s (%s) already gone", public_id, resource_kind)
            return False
        os.remove(path)
        logger.info("Deleted %s asset %s", resource_kind, public_id)
        return True

    def store(self, upload: UploadFile, resource_kind: str) -> Asset:
        with stage_upload(upload, resource_kind, self.temp_dir) as temp_path:
            return self.upload(temp_path, resource_kind)

    def discard(self, assets: List[Tuple[Asset, str]]) -> None:
        """Remove assets uploaded for a write that did not go through."""
        for asset, resource_kind in assets:
            try:
                self.delete(asset.public_id, resource_kind)
            except OSError:
                logger.exception("Could not remove orphaned asset %s", asset.public_id)


@contextmanager
def stage_upload(upload: UploadFile, resource_kind: str, temp_dir: Optional[str] = None) -> Iterator[str]:
    """Validate and copy ``upload`` into the temp dir, yielding the temp path."""
    ext = validate_format(upload.filename, resource_kind)
    directory = temp_dir or settings.TEMP_DIR
    os.makedirs(directory, exist_ok=True)
    temp_path = os.path.join(directory, f"{ObjectId()}.{ext}")
    try:
        with open(temp_path, "wb") as f:
            shutil.copyfileobj(upload.file, f)
        yield temp_path
    finally:
        if os.path.exists(temp_path):
            os.remove(temp_path)


def get_asset_host() -> LocalAssetHost:
    return LocalAssetHost(settings.UPLOAD_DIR, settings.STATIC_URL_PREFIX, settings.TEMP_DIR)
