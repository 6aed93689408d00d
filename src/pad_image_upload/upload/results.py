"""Terminal results of an upload attempt."""

from dataclasses import dataclass, field
from typing import Any

from pad_image_upload.core.exceptions import ImageUploadError


@dataclass(frozen=True)
class UploadSuccess:
    """The file was fully persisted."""

    location: str
    metadata: dict[str, Any] = field(default_factory=dict)

    succeeded = True
    status_code = 201


@dataclass(frozen=True)
class UploadFailure:
    """The upload failed; nothing is left in storage."""

    error_kind: str
    message: str
    status_code: int = 500
    reason: str | None = None

    succeeded = False

    @classmethod
    def from_error(cls, error: ImageUploadError) -> "UploadFailure":
        return cls(
            error_kind=error.error_kind,
            message=error.message,
            status_code=error.status_code or 500,
            reason=error.reason,
        )


UploadResult = UploadSuccess | UploadFailure
