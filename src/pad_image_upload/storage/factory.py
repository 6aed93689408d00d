"""Storage backend selection."""

from pad_image_upload.core.config import Settings
from pad_image_upload.storage.base import StorageBackend
from pad_image_upload.storage.gcs import GCSStorageBackend
from pad_image_upload.storage.local import LocalStorageBackend


def get_storage_backend(settings: Settings) -> StorageBackend:
    """Build the storage backend named by STORAGE_BACKEND.

    Raises:
        ValueError: If the backend is unknown or misconfigured
    """
    backend = settings.STORAGE_BACKEND.lower()

    if backend == "local":
        return LocalStorageBackend(
            base_folder=settings.LOCAL_BASE_FOLDER,
            base_url=settings.LOCAL_BASE_URL,
        )

    if backend == "gcs":
        if not settings.GCS_BUCKET_NAME:
            raise ValueError("GCS_BUCKET_NAME not configured")
        return GCSStorageBackend(
            bucket_name=settings.GCS_BUCKET_NAME,
            project_id=settings.GCP_PROJECT_ID,
            base_folder=settings.GCS_BASE_FOLDER,
            public_base_url=settings.GCS_PUBLIC_BASE_URL,
            spool_max_bytes=settings.GCS_SPOOL_MAX_BYTES,
        )

    raise ValueError(f"Unknown storage backend: {settings.STORAGE_BACKEND}")
