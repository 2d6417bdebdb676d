"""Recording storage on the local filesystem, served back over HTTP."""
import os
import re
import time
from typing import Optional, Tuple
import structlog

from mock_interviewer.config import settings
from mock_interviewer.errors import UploadError

logger = structlog.get_logger()

EXTENSION_PATTERN = re.compile(r"[A-Za-z0-9]{1,10}")


class RecordingStorage:
    """Stores answer recordings under ``<user_id>/<timestamp>.<ext>``."""

    def __init__(self, root_dir: Optional[str] = None, base_url: Optional[str] = None):
        self.root_dir = root_dir or settings.RECORDINGS_DIR
        self.base_url = (base_url or settings.RECORDINGS_BASE_URL).rstrip("/")

    def build_key(self, user_id: str, extension: str, timestamp: Optional[int] = None) -> str:
        if not user_id or "/" in user_id or "\\" in user_id or user_id.startswith("."):
            raise UploadError("Invalid user id for recording upload")
        extension = (extension or "").lstrip(".")
        if not EXTENSION_PATTERN.fullmatch(extension):
            extension = settings.RECORDING_EXTENSION
        if timestamp is None:
            timestamp = int(time.time() * 1000)
        return f"{user_id}/{timestamp}.{extension}"

    def public_url(self, key: str) -> str:
        return f"{self.base_url}/{key}"

    def _path(self, key: str) -> str:
        return os.path.join(self.root_dir, *key.split("/"))

    def upload(self, user_id: str, data: bytes, extension: str = "webm") -> Tuple[str, str]:
        """Write the blob and return ``(key, public_url)``."""
        timestamp = int(time.time() * 1000)
        key = self.build_key(user_id, extension, timestamp)
        # Keys are write-once; two clips in the same millisecond get the next free one.
        while os.path.exists(self._path(key)):
            timestamp += 1
            key = self.build_key(user_id, extension, timestamp)
        path = self._path(key)
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "wb") as f:
                f.write(data)
        except OSError as e:
            logger.error("Recording upload failed", key=key, error=str(e))
            raise UploadError(str(e)) from e

        logger.info("Recording uploaded", key=key, size=len(data))
        return key, self.public_url(key)
