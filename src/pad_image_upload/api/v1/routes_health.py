"""Health check endpoint for the pad image upload service."""

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health_check(request: Request) -> dict:
    """Health check endpoint.

    Returns service status, name, and version information.

    Returns:
        dict: Health status response with status, service, and version fields
    """
    settings = request.app.state.upload_context.settings
    return {
        "status": "ok",
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
    }
