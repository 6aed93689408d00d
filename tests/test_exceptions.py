"""Smoke tests for upload exceptions and results."""

import pytest

from pad_image_upload.core.exceptions import (
    ClientAbortedError,
    ImageUploadError,
    InternalUploadError,
    MalformedUploadError,
    RejectionReason,
    StorageFailureError,
    ValidationRejectedError,
)
from pad_image_upload.upload.results import UploadFailure


def test_upload_exception_hierarchy():
    """Test that all exceptions inherit from ImageUploadError."""
    assert issubclass(ValidationRejectedError, ImageUploadError)
    assert issubclass(ClientAbortedError, ImageUploadError)
    assert issubclass(MalformedUploadError, ImageUploadError)
    assert issubclass(StorageFailureError, ImageUploadError)
    assert issubclass(InternalUploadError, ImageUploadError)


@pytest.mark.parametrize(
    "error,kind,status",
    [
        (ValidationRejectedError(RejectionReason.EXTENSION, "bad type"), "validation_rejected", 400),
        (ValidationRejectedError(RejectionReason.SIZE, "too big"), "validation_rejected", 413),
        (ClientAbortedError("gone"), "client_aborted", 400),
        (MalformedUploadError("broken"), "malformed_upload", 400),
        (StorageFailureError("disk"), "storage_failure", 502),
        (InternalUploadError("oops"), "internal_error", 500),
    ],
)
def test_error_classification(error, kind, status):
    """Test each error maps to its kind and HTTP status."""
    failure = UploadFailure.from_error(error)

    assert failure.error_kind == kind
    assert failure.status_code == status
    assert failure.message == error.message
    assert failure.succeeded is False


def test_rejection_carries_reason():
    """Test validation errors expose the rejection reason."""
    error = ValidationRejectedError(RejectionReason.SIZE, "too big")

    assert error.reason == "size"
    assert str(error) == "too big"
