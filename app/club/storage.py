"""
File storage helpers

Uploads go to a single Supabase Storage bucket under per-club prefixes:
club-documents/, club-protocols/, club-avatars/, club-logos/
"""
import re
import uuid
from typing import List, Optional

from fastapi import UploadFile
from loguru import logger

from app.config import supabase_config, upload_config
from database.supabase_client import get_supabase_client
from .errors import InvalidRequestError, StorageError

UPLOAD_CHUNK_BYTES = 1024 * 1024


def safe_filename(filename: Optional[str]) -> str:
    """Strip path parts and unusual characters from an uploaded file name"""
    name = (filename or "file").replace("\\", "/").split("/")[-1]
    name = re.sub(r"[^\w.\-]+", "_", name).strip("._")
    return name or "file"


def build_path(prefix: str, club_id: str, filename: Optional[str], *parts: str) -> str:
    """{prefix}/{club_id}/{parts...}/{uuid}-{filename}"""
    segments = [prefix, club_id, *[p for p in parts if p]]
    return "/".join(segments + [f"{uuid.uuid4()}-{safe_filename(filename)}"])


async def read_upload(
    file: UploadFile,
    max_bytes: Optional[int] = None,
    image_only: bool = False
) -> bytes:
    """Read an uploaded file, enforcing the size limit and type"""
    max_bytes = max_bytes or upload_config.max_upload_bytes

    if image_only and not (file.content_type or "").startswith("image/"):
        raise InvalidRequestError("errors.image_required")

    too_large = InvalidRequestError("errors.file_too_large", max_mb=max_bytes // (1024 * 1024))
    if file.size is not None and file.size > max_bytes:
        raise too_large

    # read in chunks so oversized uploads are rejected early
    chunks = []
    total = 0
    while True:
        chunk = await file.read(UPLOAD_CHUNK_BYTES)
        if not chunk:
            break
        total += len(chunk)
        if total > max_bytes:
            raise too_large
        chunks.append(chunk)

    if not total:
        raise InvalidRequestError("errors.file_empty")
    return b"".join(chunks)


class ClubStorage:
    """Storage bucket wrapper"""

    def __init__(self, bucket: Optional[str] = None):
        self.bucket = bucket or supabase_config.storage_bucket

    def _bucket(self):
        return get_supabase_client().storage.from_(self.bucket)

    def upload(self, path: str, content: bytes, content_type: Optional[str] = None) -> str:
        """Upload and return the public URL"""
        try:
            self._bucket().upload(
                path,
                content,
                {"content-type": content_type or "application/octet-stream"}
            )
            return self._bucket().get_public_url(path)
        except Exception as e:
            logger.error(f"Storage upload failed ({path}): {e}")
            raise StorageError("errors.storage", error=str(e))

    def remove(self, paths: List[str]) -> None:
        """Delete objects; failures are logged and ignored"""
        paths = [p for p in paths if p]
        if not paths:
            return
        try:
            self._bucket().remove(paths)
        except Exception as e:
            logger.warning(f"Storage remove failed ({paths}): {e}")


club_storage = ClubStorage()
