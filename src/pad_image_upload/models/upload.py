"""Upload API models."""

from typing import Any, Optional

from pydantic import BaseModel, Field

from pad_image_upload.upload.results import UploadFailure, UploadSuccess


class UploadResponse(BaseModel):
    """Response model for a stored upload."""

    location: str = Field(..., description="Caller-resolvable reference to the stored file")
    key: str = Field(..., description="Destination key of the stored file")
    pad_id: str
    file_name: str
    content_type: str
    size_bytes: int
    storage_backend: str

    @classmethod
    def from_result(cls, result: UploadSuccess) -> "UploadResponse":
        return cls(location=result.location, **result.metadata)


class ErrorResponse(BaseModel):
    """Response model for a failed upload."""

    error: str = Field(..., description="Error kind, e.g. validation_rejected")
    message: str
    reason: Optional[str] = Field(None, description="Rejection reason: extension or size")

    @classmethod
    def from_result(cls, result: UploadFailure) -> "ErrorResponse":
        return cls(error=result.error_kind, message=result.message, reason=result.reason)


class ClientSettings(BaseModel):
    """Upload settings exposed to editor clients."""

    file_types: list[str]
    max_file_size: Optional[int] = None


class ExportLine(BaseModel):
    """One pad line: its text and its attribute string."""

    text: str
    attribs: Optional[str] = Field(None, description="Attribute string, e.g. *0*1+1|1+1")


class LineExportRequest(BaseModel):
    """Pad lines to export together with the pad's attribute pool."""

    pool: dict[str, Any] = Field(..., description='Serialized attribute pool, {"numToAttrib": {...}}')
    lines: list[ExportLine]


class LineExportResponse(BaseModel):
    """Export content for each requested line, in order."""

    lines: list[str]
