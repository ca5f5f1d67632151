"""
Inkwell Backend — Cover Image Storage
=======================================

What:  Pluggable storage for post cover images.
How:   An abstract CoverStorage with three implementations selected by the
       COVER_STORAGE setting:

       local   Validates and writes the upload under STORAGE_ROOT in
               date-organized directories, returns "uploads/YYYY/MM/DD/<uuid>.<ext>"
               and serves it back through GET /uploads/{path}.
       remote  Validates the upload and returns a reference under
               COVER_REMOTE_BASE_URL. The bytes are shipped to the object
               store by the deployment, not by this process.
       none    Ignores uploads; posts keep no cover.

Who:   PostService on create/update; the /uploads route for local files.

Upload checks (local and remote):
    1. Extension: .png .jpg .jpeg .gif .webp
    2. Size: non-empty and at most MAX_FILE_SIZE
    3. UUID filename: no user input reaches the file system path
"""

import logging
import os
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple

import aiofiles

from inkwell.config import Settings
from inkwell.exceptions import FileStorageError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp"}

# URL prefix under which local covers are served
LOCAL_URL_PREFIX = "uploads"


class CoverStorage(ABC):
    """
    Contract for cover storage backends.

    store() returns the opaque reference saved in Post.cover, or None when
    the backend keeps no covers.
    """

    name: str = "abstract"

    def __init__(self, max_file_size: int = 5_242_880):
        self.max_file_size = max_file_size

    @abstractmethod
    async def store(self, filename: str, content: bytes) -> Optional[str]:
        ...

    async def discard(self, reference: str) -> None:
        """Best-effort removal of a stored cover; a no-op unless overridden."""
        return None

    def validate_extension(self, filename: str) -> str:
        """
        Check the file extension against the allowed image types.

        Returns: normalized extension (lowercase with dot)
        Raises:  ValidationError if the extension is not allowed
        """
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="file",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_size(self, content: bytes) -> None:
        if not content:
            raise ValidationError(message="Uploaded cover file is empty", field="file")
        if len(content) > self.max_file_size:
            max_mb = self.max_file_size / (1024 * 1024)
            raise ValidationError(
                message=(
                    f"File size ({len(content) / (1024 * 1024):.1f}MB) is too large. "
                    f"Maximum is {max_mb:.0f}MB."
                ),
                field="file",
                context={"max_size_mb": max_mb, "actual_size": len(content)},
            )

    def validate(self, filename: str, content: bytes) -> str:
        ext = self.validate_extension(filename)
        self.validate_size(content)
        return ext


class LocalCoverStorage(CoverStorage):
    """
    Stores covers on the local file system.

    Directory Structure:
        <storage_root>/
        └── 2024/
            └── 01/
                └── 15/
                    ├── a1b2c3d4-....jpg
                    └── e5f6g7h8-....png
    """

    name = "local"

    def __init__(self, storage_root: str, max_file_size: int = 5_242_880):
        super().__init__(max_file_size=max_file_size)
        self.storage_root = Path(storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("LocalCoverStorage initialized with storage_root=%s", self.storage_root)

    def _generate_storage_path(self, extension: str) -> Tuple[Path, str]:
        """Return (absolute_path, relative_path) for a new YYYY/MM/DD/<uuid><ext> file."""
        date_dir = datetime.now(timezone.utc).strftime("%Y/%m/%d")
        relative_path = f"{date_dir}/{uuid.uuid4()}{extension}"
        return self.storage_root / relative_path, relative_path

    async def store(self, filename: str, content: bytes) -> str:
        ext = self.validate(filename, content)
        absolute_path, relative_path = self._generate_storage_path(ext)

        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store cover at %s: %s", absolute_path, e)
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"path": str(absolute_path), "os_error": str(e)},
            )

        logger.info("Cover stored: %s (%d bytes)", relative_path, len(content))
        return f"{LOCAL_URL_PREFIX}/{relative_path}"

    def resolve(self, relative_path: str) -> Path:
        """
        Map a path below /uploads to a file inside the storage root.

        Raises:
            ValidationError: the path escapes the storage root (../ traversal)
            NotFoundError:   no such file
        """
        full_path = (self.storage_root / relative_path).resolve()
        if not full_path.is_relative_to(self.storage_root):
            raise ValidationError(message="Invalid file path", field="path")
        if not full_path.is_file():
            raise NotFoundError(resource="file", resource_id=relative_path)
        return full_path

    async def discard(self, reference: str) -> None:
        """
        Remove a stored cover after a failed post write.

        Errors are logged, not raised: the request is already failing with
        the original error.
        """
        relative_path = reference.removeprefix(f"{LOCAL_URL_PREFIX}/")
        try:
            path = (self.storage_root / relative_path).resolve()
            if path.is_relative_to(self.storage_root) and path.exists():
                os.remove(path)
                logger.info("Discarded orphaned cover: %s", relative_path)
        except OSError as e:
            logger.warning("Failed to discard cover %s: %s", reference, e)


class RemoteCoverStorage(CoverStorage):
    """Mints object-store references for covers; performs no local writes."""

    name = "remote"

    def __init__(self, base_url: str, max_file_size: int = 5_242_880):
        super().__init__(max_file_size=max_file_size)
        self.base_url = base_url.rstrip("/")

    async def store(self, filename: str, content: bytes) -> str:
        ext = self.validate(filename, content)
        reference = f"{self.base_url}/{uuid.uuid4()}{ext}"
        logger.info("Cover reference minted: %s (%d bytes)", reference, len(content))
        return reference


class NullCoverStorage(CoverStorage):
    """Drops uploaded covers."""

    name = "none"

    async def store(self, filename: str, content: bytes) -> None:
        logger.debug("Cover upload '%s' ignored (cover storage disabled)", filename)
        return None


def build_cover_storage(config: Settings) -> CoverStorage:
    """Select the cover storage backend named by COVER_STORAGE."""
    if config.cover_storage == "local":
        return LocalCoverStorage(config.storage_root, max_file_size=config.max_file_size)
    if config.cover_storage == "remote":
        return RemoteCoverStorage(config.cover_remote_base_url, max_file_size=config.max_file_size)
    return NullCoverStorage(max_file_size=config.max_file_size)
