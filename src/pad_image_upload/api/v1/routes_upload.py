"""Upload API routes."""

import logging
from dataclasses import dataclass

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from pad_image_upload.core.config import Settings
from pad_image_upload.core.exceptions import ImageUploadError, MalformedUploadError
from pad_image_upload.models.upload import ClientSettings, ErrorResponse, UploadResponse
from pad_image_upload.storage.base import StorageBackend
from pad_image_upload.upload.ingest import MultipartIngest, discard_stream
from pad_image_upload.upload.results import UploadFailure, UploadResult
from pad_image_upload.upload.session import UploadRequest, UploadSession
from pad_image_upload.upload.validation import UploadPolicy

router = APIRouter(prefix="/p/{pad_id}/pluginfw/image-upload", tags=["upload"])
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadContext:
    """Upload dependencies built once at startup."""

    settings: Settings
    policy: UploadPolicy
    storage: StorageBackend


def get_upload_context(request: Request) -> UploadContext:
    return request.app.state.upload_context


def render_result(result: UploadResult) -> JSONResponse:
    """Translate a terminal upload result into an HTTP response."""
    if result.succeeded:
        body = UploadResponse.from_result(result)
    else:
        body = ErrorResponse.from_result(result)
    return JSONResponse(status_code=result.status_code, content=body.model_dump())


async def upload_error_handler(request: Request, exc: ImageUploadError) -> JSONResponse:
    """Render upload errors raised outside an upload session."""
    return render_result(UploadFailure.from_error(exc))


@router.post(
    "/upload",
    status_code=201,
    response_model=UploadResponse,
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def upload_image(
    pad_id: str,
    request: Request,
    context: UploadContext = Depends(get_upload_context),
) -> JSONResponse:
    """Stream the first file part of a multipart body into storage.

    Other parts are ignored. The request body is always drained (or the
    client gone) before the response is produced.
    """
    try:
        ingest = MultipartIngest(request.headers, request.stream())
    except MalformedUploadError:
        await discard_stream(request.stream())
        raise

    async with ingest:
        part = await ingest.next_file_part()
        if part is None:
            raise MalformedUploadError("No file part in request")

        logger.debug(
            "Receiving file part",
            extra={
                "pad_id": pad_id,
                "field_name": part.field_name,
                "file_name": part.filename,
                "content_type": part.content_type,
            },
        )
        session = UploadSession(
            UploadRequest(pad_id=pad_id, part=part, policy=context.policy),
            context.storage,
        )
        result = await session.run()

    return render_result(result)


@router.get("/settings", response_model=ClientSettings)
async def client_settings(
    pad_id: str, context: UploadContext = Depends(get_upload_context)
) -> ClientSettings:
    """Expose upload settings to editor clients, without storage configuration."""
    return ClientSettings(**context.settings.client_settings)
