"""Firebase Storage access for recipe images."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterator, Optional

from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as auth_exceptions

from app.utils.exceptions import NotFoundError, StorageError

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "image/jpeg"


@dataclass(frozen=True)
class ObjectMetadata:
    content_type: str
    size: Optional[int]


def build_upload_path(
    user_id: str,
    file_name: str,
    recipe_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    """``recipes/<userId>/<recipeId or epoch millis>_<fileName>``"""
    if not recipe_id:
        now = now or datetime.now(timezone.utc)
        recipe_id = str(int(now.timestamp() * 1000))
    return f"recipes/{user_id}/{recipe_id}_{file_name}"


@contextmanager
def _storage_call(action: str, path: str) -> Iterator[None]:
    """Wrap SDK failures in StorageError; a missing object is reported by exists/get_metadata."""
    try:
        yield
    except (google_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError) as e:
        logger.error(f"Storage {action} failed for {path}: {str(e)}", exc_info=True)
        raise StorageError(f"Failed to {action}: {str(e)}") from e


class StorageService:
    """Thin wrapper over a Cloud Storage bucket (blocking calls)."""

    def __init__(self, bucket: Any, make_public: bool = True) -> None:
        self._bucket = bucket
        self._make_public = make_public

    @property
    def bucket_name(self) -> str:
        return self._bucket.name

    def upload(self, path: str, data: bytes, content_type: str, owner_id: str) -> None:
        blob = self._bucket.blob(path)
        blob.metadata = {
            "uploadedBy": owner_id,
            "uploadedAt": datetime.now(timezone.utc).isoformat(),
        }
        with _storage_call("upload image", path):
            blob.upload_from_string(data, content_type=content_type)
        logger.info("Image uploaded", extra={"upload_path": path, "size": len(data)})

    def exists(self, path: str) -> bool:
        with _storage_call("check image", path):
            return bool(self._bucket.blob(path).exists())

    def get_metadata(self, path: str) -> ObjectMetadata:
        with _storage_call("read image metadata", path):
            blob = self._bucket.get_blob(path)
        if blob is None:
            raise NotFoundError("Image not found")
        return ObjectMetadata(content_type=blob.content_type or DEFAULT_CONTENT_TYPE, size=blob.size)

    def open_stream(self, path: str, chunk_size: int = 256 * 1024) -> Iterator[bytes]:
        """Yield the object's bytes in chunks. Errors surface while iterating."""
        blob = self._bucket.blob(path)
        with _storage_call("stream image", path):
            with blob.open("rb", chunk_size=chunk_size) as reader:
                while True:
                    chunk = reader.read(chunk_size)
                    if not chunk:
                        break
                    yield chunk

    def public_url(self, path: str) -> str:
        blob = self._bucket.blob(path)
        if self._make_public:
            with _storage_call("make image public", path):
                blob.make_public()
        return blob.public_url
