"""Google Cloud Storage backend."""

import asyncio
import logging
import tempfile
from typing import AsyncIterator, Optional

from google.api_core.exceptions import GoogleAPIError, NotFound
from google.cloud import storage
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from pad_image_upload.core.exceptions import StorageFailureError
from pad_image_upload.storage.base import StorageBackend, StoredObject

logger = logging.getLogger(__name__)


def _is_retryable_cleanup_error(error: BaseException) -> bool:
    return isinstance(error, GoogleAPIError) and not isinstance(error, NotFound)


class GCSStorageBackend(StorageBackend):
    """Google Cloud Storage backend.

    The incoming stream is spooled to a temporary file (memory first, disk
    past ``spool_max_bytes``) and uploaded only after it ended cleanly, so
    an aborted upload never creates a remote object. Uploads use
    ``if_generation_match=0`` and therefore never replace an existing blob.
    """

    def __init__(
        self,
        bucket_name: str,
        project_id: str | None = None,
        base_folder: str = "pads",
        public_base_url: str = "",
        spool_max_bytes: int = 1024 * 1024,
    ):
        self.bucket_name = bucket_name
        self.project_id = project_id or None
        self.base_folder = base_folder.strip("/")
        self.public_base_url = (
            public_base_url or f"https://storage.googleapis.com/{bucket_name}"
        ).rstrip("/")
        self.spool_max_bytes = spool_max_bytes
        self._client: Optional[storage.Client] = None
        self._bucket: Optional[storage.Bucket] = None

    def _get_bucket(self) -> storage.Bucket:
        """Lazy-load and cache GCS bucket."""
        if self._bucket is None:
            if not self.bucket_name:
                raise ValueError("GCS_BUCKET_NAME not configured")

            self._client = storage.Client(project=self.project_id)
            self._bucket = self._client.bucket(self.bucket_name)

        return self._bucket

    def get_blob_path(self, key: str) -> str:
        return f"{self.base_folder}/{key}" if self.base_folder else key

    def get_location(self, key: str) -> str:
        return f"{self.public_base_url}/{self.get_blob_path(key)}"

    async def put(
        self,
        key: str,
        stream: AsyncIterator[bytes],
        content_type: str,
        size_hint: int | None = None,
    ) -> StoredObject:
        """Spool a stream locally, then upload it to GCS."""
        try:
            bucket = self._get_bucket()
        except ValueError as e:
            raise StorageFailureError(str(e)) from e

        blob_path = self.get_blob_path(key)
        blob = bucket.blob(blob_path)
        blob.content_type = content_type

        with tempfile.SpooledTemporaryFile(max_size=self.spool_max_bytes) as spool:
            size = 0
            async for chunk in stream:
                await asyncio.to_thread(spool.write, chunk)
                size += len(chunk)

            try:
                await asyncio.to_thread(
                    blob.upload_from_file,
                    spool,
                    rewind=True,
                    size=size,
                    content_type=content_type,
                    if_generation_match=0,
                )
            except (GoogleAPIError, OSError) as e:
                logger.error(
                    "Failed to upload file to GCS",
                    extra={"bucket": self.bucket_name, "blob": blob_path, "error": str(e)},
                )
                await asyncio.to_thread(self._discard_remote, blob)
                raise StorageFailureError(f"Failed to store file: {e}") from e

        logger.debug(
            "Upload stored in GCS",
            extra={"bucket": self.bucket_name, "blob": blob_path, "size_bytes": size},
        )
        return StoredObject(key=key, location=self.get_location(key), size=size)

    def get_backend_name(self) -> str:
        return "gcs"

    def _discard_remote(self, blob: storage.Blob) -> None:
        """Remove whatever a failed upload may have committed."""
        try:
            self._delete_blob(blob)
        except NotFound:
            pass
        except GoogleAPIError as e:
            logger.warning(
                "Failed to remove partial upload from GCS",
                extra={"bucket": self.bucket_name, "blob": blob.name, "error": str(e)},
            )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=5),
        retry=retry_if_exception(_is_retryable_cleanup_error),
        reraise=True,
    )
    def _delete_blob(self, blob: storage.Blob) -> None:
        blob.delete()
