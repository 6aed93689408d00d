"""Pad export API routes."""

import logging

from fastapi import APIRouter, HTTPException

from pad_image_upload.export.lines import AttributePool, line_content_for_export
from pad_image_upload.models.upload import LineExportRequest, LineExportResponse

router = APIRouter(prefix="/p/{pad_id}/pluginfw/image-upload", tags=["export"])
logger = logging.getLogger(__name__)


@router.post("/export/lines", response_model=LineExportResponse)
async def export_lines(pad_id: str, body: LineExportRequest) -> LineExportResponse:
    """Replace the content of image lines with their image reference.

    Lines without an image attribute on their first operation are returned
    unchanged.
    """
    try:
        pool = AttributePool.from_json(body.pool)
        lines = [
            line_content_for_export(line.text, line.attribs, pool)
            for line in body.lines
        ]
    except (ValueError, TypeError, IndexError) as e:
        logger.warning(
            f"Invalid pad lines for export: {e}",
            extra={"pad_id": pad_id},
        )
        raise HTTPException(status_code=400, detail=str(e))

    return LineExportResponse(lines=lines)
