"""Local filesystem storage backend."""

import asyncio
import logging
import os
from pathlib import Path
from typing import AsyncIterator
from uuid import uuid4

from pad_image_upload.core.exceptions import StorageFailureError
from pad_image_upload.storage.base import StorageBackend, StoredObject

logger = logging.getLogger(__name__)


class LocalStorageBackend(StorageBackend):
    """Local filesystem storage backend.

    Files are written to a hidden temporary name next to their final path
    and renamed into place only once the whole stream has been written.
    """

    def __init__(self, base_folder: str | Path = "data/uploads", base_url: str = "/uploads"):
        self.base_path = Path(base_folder)
        self.base_url = base_url.rstrip("/")

    def get_target_path(self, key: str) -> Path:
        """Resolve a destination key to a path under the base folder."""
        target = (self.base_path / key).resolve()
        if not target.is_relative_to(self.base_path.resolve()):
            raise StorageFailureError(f"Key escapes storage folder: {key}")
        return target

    def get_location(self, key: str) -> str:
        return f"{self.base_url}/{key}"

    async def put(
        self,
        key: str,
        stream: AsyncIterator[bytes],
        content_type: str,
        size_hint: int | None = None,
    ) -> StoredObject:
        """Write a stream to the local filesystem."""
        target_path = self.get_target_path(key)
        temp_path = target_path.with_name(f".{target_path.name}.{uuid4().hex}.part")
        size = 0

        try:
            await asyncio.to_thread(target_path.parent.mkdir, parents=True, exist_ok=True)
            f = await asyncio.to_thread(open, temp_path, "wb")
            try:
                async for chunk in stream:
                    await asyncio.to_thread(f.write, chunk)
                    size += len(chunk)
            finally:
                await asyncio.to_thread(f.close)
            await asyncio.to_thread(os.replace, temp_path, target_path)
        except OSError as e:
            await self._discard(temp_path)
            logger.error(
                "Failed to write upload to local storage",
                extra={"key": key, "error": str(e)},
            )
            raise StorageFailureError(f"Failed to store file: {e}") from e
        except BaseException:
            # Stream error or cancellation: no partial file may remain
            await self._discard(temp_path)
            raise

        logger.debug(
            "Upload stored on local filesystem",
            extra={"key": key, "path": str(target_path), "size_bytes": size},
        )
        return StoredObject(key=key, location=self.get_location(key), size=size)

    def get_backend_name(self) -> str:
        return "local"

    @staticmethod
    async def _discard(path: Path) -> None:
        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as e:
            logger.warning(
                "Failed to remove partial upload",
                extra={"path": str(path), "error": str(e)},
            )
