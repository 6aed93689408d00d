"""
Streaming upload pipeline.

Couples a multipart request body to the validation policy and a storage
backend, producing exactly one result per upload attempt.
"""

from pad_image_upload.upload.ingest import FilePart, MultipartIngest
from pad_image_upload.upload.keys import generate_destination_key
from pad_image_upload.upload.results import UploadFailure, UploadResult, UploadSuccess
from pad_image_upload.upload.session import SessionState, UploadRequest, UploadSession
from pad_image_upload.upload.validation import (
    Accepted,
    Rejected,
    UploadPolicy,
    validate_upload,
)

__all__ = [
    "FilePart",
    "MultipartIngest",
    "generate_destination_key",
    "UploadFailure",
    "UploadResult",
    "UploadSuccess",
    "SessionState",
    "UploadRequest",
    "UploadSession",
    "Accepted",
    "Rejected",
    "UploadPolicy",
    "validate_upload",
]
