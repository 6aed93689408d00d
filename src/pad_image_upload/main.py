"""Main application entrypoint for the pad image upload service."""

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from pad_image_upload.api.v1 import routes_export, routes_health
from pad_image_upload.api.v1.routes_upload import (
    UploadContext,
    router as upload_router,
    upload_error_handler,
)
from pad_image_upload.core.config import Settings, settings as default_settings
from pad_image_upload.core.exceptions import ImageUploadError
from pad_image_upload.core.logging import setup_logging
from pad_image_upload.core.middleware import HTTPErrorLoggingMiddleware
from pad_image_upload.storage.factory import get_storage_backend
from pad_image_upload.storage.local import LocalStorageBackend


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    The upload policy and storage backend are built here, once, and handed
    to the routes through ``app.state``.

    Args:
        settings: Settings to build the app from, defaults to the environment

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    settings = settings or default_settings

    # Initialize logging first
    setup_logging(settings)

    app = FastAPI(
        title=settings.SERVICE_NAME,
        version=settings.SERVICE_VERSION,
    )

    storage = get_storage_backend(settings)
    app.state.upload_context = UploadContext(
        settings=settings,
        policy=settings.upload_policy,
        storage=storage,
    )

    app.add_middleware(HTTPErrorLoggingMiddleware)
    app.add_exception_handler(ImageUploadError, upload_error_handler)

    # Register routers
    app.include_router(routes_health.router, tags=["health"])
    app.include_router(upload_router)
    app.include_router(routes_export.router)

    # Serve locally stored uploads at their reported location
    if isinstance(storage, LocalStorageBackend) and storage.base_url.startswith("/"):
        app.mount(
            storage.base_url,
            StaticFiles(directory=storage.base_path, check_dir=False),
            name="uploads",
        )

    return app


# Export app instance for ASGI servers
app = create_app()
