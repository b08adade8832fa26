"""Profile photo storage for auction player registrations."""

import logging
import uuid
from pathlib import Path
from typing import Protocol

from .models import ProfilePhoto

logger = logging.getLogger(__name__)

EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


class PhotoUploader(Protocol):
    """Stores a photo and returns the URL it is served from."""

    def upload(self, tournament_id: str, photo: ProfilePhoto) -> str: ...


class LocalPhotoUploader:
    """Writes photos under a local directory."""

    def __init__(self, directory: str | Path, base_url: str = "/uploads/players"):
        self.directory = Path(directory)
        self.base_url = base_url.rstrip("/")

    def upload(self, tournament_id: str, photo: ProfilePhoto) -> str:
        extension = EXTENSIONS.get(photo.content_type.lower(), "bin")
        filename = f"{tournament_id}_{uuid.uuid4().hex}.{extension}"

        self.directory.mkdir(parents=True, exist_ok=True)
        (self.directory / filename).write_bytes(photo.content)

        logger.info(f"Stored profile photo {photo.filename} as {filename}")
        return f"{self.base_url}/{filename}"
