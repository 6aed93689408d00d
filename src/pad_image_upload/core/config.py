"""Configuration management for the pad image upload service."""

from pydantic_settings import BaseSettings, SettingsConfigDict

from pad_image_upload.upload.validation import UploadPolicy


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )

    ENV: str = "local"
    SERVICE_NAME: str = "pad-image-upload"
    SERVICE_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"

    # Upload Constraints
    UPLOAD_FILE_TYPES: str = "jpeg,jpg,bmp,gif,png"  # Comma-separated, empty = allow all
    MAX_FILE_SIZE: int = 5_000_000  # bytes, 0 = unbounded

    # Storage Configuration
    STORAGE_BACKEND: str = "local"  # "gcs" or "local"
    LOCAL_BASE_FOLDER: str = "data/uploads"
    LOCAL_BASE_URL: str = "/uploads"

    # GCP Configuration
    GCP_PROJECT_ID: str = ""
    GCS_BUCKET_NAME: str = ""
    GCS_BASE_FOLDER: str = "pads"
    GCS_PUBLIC_BASE_URL: str = ""  # Defaults to https://storage.googleapis.com/{bucket}
    GCS_SPOOL_MAX_BYTES: int = 1024 * 1024  # Spool to disk above this size

    @property
    def allowed_extensions(self) -> list[str]:
        """Parse UPLOAD_FILE_TYPES into a list of lower-case extensions."""
        return [
            ext.strip().lstrip(".").lower()
            for ext in self.UPLOAD_FILE_TYPES.split(",")
            if ext.strip()
        ]

    @property
    def max_file_size_bytes(self) -> int | None:
        """MAX_FILE_SIZE as a byte ceiling, None when unbounded."""
        return self.MAX_FILE_SIZE if self.MAX_FILE_SIZE > 0 else None

    @property
    def upload_policy(self) -> UploadPolicy:
        """Immutable validation policy derived from the upload constraints."""
        return UploadPolicy(
            allowed_extensions=tuple(self.allowed_extensions),
            max_file_size=self.max_file_size_bytes,
        )

    @property
    def client_settings(self) -> dict:
        """Upload settings safe to expose to editor clients (no storage config)."""
        return {
            "file_types": self.allowed_extensions,
            "max_file_size": self.max_file_size_bytes,
        }


# Singleton settings instance
settings = Settings()
