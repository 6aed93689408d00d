"""Custom exceptions for the upload pipeline.

Every error carries the kind and HTTP status used when it is rendered as
a terminal upload result.
"""

from enum import Enum


class RejectionReason(str, Enum):
    """Why validation rejected an upload."""

    EXTENSION = "extension"
    SIZE = "size"


class ImageUploadError(Exception):
    """Base exception for the upload pipeline."""

    error_kind = "internal_error"
    status_code = 500

    def __init__(self, message: str, reason: str | None = None):
        super().__init__(message)
        self.message = message
        self.reason = reason


class ValidationRejectedError(ImageUploadError):
    """Exception raised when an upload violates the extension or size policy."""

    error_kind = "validation_rejected"

    def __init__(self, reason: RejectionReason, message: str):
        super().__init__(message, reason=reason.value)
        self.status_code = 413 if reason is RejectionReason.SIZE else 400


class ClientAbortedError(ImageUploadError):
    """Exception raised when the client disconnects mid-upload."""

    error_kind = "client_aborted"
    status_code = 400


class MalformedUploadError(ImageUploadError):
    """Exception raised for broken multipart framing or a missing file part."""

    error_kind = "malformed_upload"
    status_code = 400


class StorageFailureError(ImageUploadError):
    """Exception raised when the storage backend cannot persist a file."""

    error_kind = "storage_failure"
    status_code = 502


class InternalUploadError(ImageUploadError):
    """Exception raised for unexpected failures."""

    pass
