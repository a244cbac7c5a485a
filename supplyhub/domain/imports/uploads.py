"""
Temporary storage for uploaded import files.

An upload is written to local disk under a process-unique name before it is
parsed and is deleted again once the import request finishes, whatever the
outcome. Deletion problems are logged and never raised so they cannot mask
the import result.
"""
import logging
import os
import re
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Protocol

from .errors import UploadTooLarge

logger = logging.getLogger(__name__)

COPY_CHUNK_SIZE = 1024 * 1024
_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class IncomingUpload(Protocol):
    """Anything shaped like FastAPI's ``UploadFile``."""

    filename: Optional[str]
    file: BinaryIO


@dataclass(frozen=True)
class UploadedFile:
    storage_path: str
    original_name: str
    size_bytes: int


def _safe_file_name(original_name: Optional[str]) -> str:
    base = os.path.basename(original_name or "").strip()
    cleaned = _UNSAFE_NAME_CHARS.sub("_", base).strip("._")
    return cleaned or "upload.csv"


class TemporaryFileStore:
    """Owns the on-disk lifetime of uploaded import files."""

    def __init__(self, upload_dir: str, max_bytes: Optional[int] = None):
        self.upload_dir = Path(upload_dir)
        self.max_bytes = max_bytes

    def _unique_path(self, original_name: Optional[str]) -> Path:
        stamp = int(time.time() * 1000)
        return self.upload_dir / f"{stamp}-{uuid.uuid4().hex[:8]}-{_safe_file_name(original_name)}"

    def acquire(self, upload: IncomingUpload) -> UploadedFile:
        """Copy the upload's byte stream to disk and return a handle to it."""
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        target = self._unique_path(upload.filename)
        original_name = upload.filename or target.name
        written = 0

        try:
            with open(target, "wb") as out:
                while True:
                    chunk = upload.file.read(COPY_CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if self.max_bytes is not None and written > self.max_bytes:
                        raise UploadTooLarge(original_name, self.max_bytes)
                    out.write(chunk)
        except BaseException:
            self.release(str(target))
            raise

        logger.debug("Stored upload '%s' at %s (%d bytes)", original_name, target, written)
        return UploadedFile(storage_path=str(target), original_name=original_name, size_bytes=written)

    def release(self, path: str) -> None:
        """Delete a stored upload. Never raises."""
        try:
            os.remove(path)
        except FileNotFoundError:
            return
        except OSError as exc:
            logger.error("Error deleting temporary file %s: %s", path, exc)
        else:
            logger.debug("Deleted temporary file %s", path)

    @contextmanager
    def held(self, upload: IncomingUpload) -> Iterator[UploadedFile]:
        """Acquire an upload for the duration of the block and always release it."""
        stored = self.acquire(upload)
        try:
            yield stored
        finally:
            self.release(stored.storage_path)
