"""
Upload storage on the local filesystem.

Files are written to <root>/<user id>/<epoch ms>-<sanitized name>. The stored
path is recorded on the Resource row and is otherwise opaque to queries.
"""
import logging
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool

from studyshare.core.errors import ValidationFailure

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.\-_]")


@dataclass
class StoredFile:
    """Metadata of a file that has been written to disk."""
    path: str
    file_name: str     # Original client-side name
    content_type: str
    size: int          # Bytes


def sanitize_filename(name: str) -> str:
    """Replace everything outside [A-Za-z0-9.-_] with underscores."""
    return _UNSAFE_CHARS.sub("_", name or "") or "upload"


class FileStorage:
    def __init__(self, root: str, max_bytes: int, allowed_types: Iterable[str]):
        self.root = Path(root)
        self.max_bytes = max_bytes
        self.allowed_types = set(allowed_types)

    def validate(self, content_type: str, size: int) -> None:
        """
        Raises:
            ValidationFailure: Unsupported MIME type, empty file or over the size limit
        """
        if content_type not in self.allowed_types:
            raise ValidationFailure("Invalid file type. Only PDF, Word documents, and images are allowed.")
        if size == 0:
            raise ValidationFailure("Uploaded file is empty")
        if size > self.max_bytes:
            raise ValidationFailure(f"File exceeds the {self.max_bytes // (1024 * 1024)}MB limit")

    async def save(self, owner_id, upload: UploadFile) -> StoredFile:
        """
        Validate and write an upload; returns where it went.

        At most max_bytes + 1 bytes are read, so an oversized body is
        rejected without being held in memory.
        """
        content_type = upload.content_type or ""
        try:
            if upload.size is not None:
                self.validate(content_type, upload.size)
            data = await upload.read(self.max_bytes + 1)
            self.validate(content_type, len(data))
        except ValidationFailure:
            logger.warning("[Uploads] Rejected %r (%s)", upload.filename, content_type)
            raise

        directory = self.root / str(owner_id)
        directory.mkdir(parents=True, exist_ok=True)
        target = directory / f"{int(time.time() * 1000)}-{sanitize_filename(upload.filename)}"
        await run_in_threadpool(target.write_bytes, data)
        return StoredFile(
            path=str(target),
            file_name=upload.filename or target.name,
            content_type=content_type,
            size=len(data),
        )

    def remove(self, path: str) -> None:
        """Delete a stored file, e.g. after the resource insert failed."""
        try:
            Path(path).unlink(missing_ok=True)
        except OSError as e:
            logger.warning("[Uploads] Failed to clean up %s: %s", path, e)
