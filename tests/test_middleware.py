"""Tests for HTTP error logging."""

import io
import logging

import pytest
from fastapi.testclient import TestClient

from conftest import RecordingStorage
from pad_image_upload.api.v1.routes_upload import UploadContext
from pad_image_upload.core.config import Settings
from pad_image_upload.main import create_app

UPLOAD_URL = "/p/pad-7/pluginfw/image-upload/upload"


class ListHandler(logging.Handler):
    def __init__(self):
        super().__init__(level=logging.DEBUG)
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@pytest.fixture
def upload_settings(tmp_path):
    return Settings(
        _env_file=None,
        LOCAL_BASE_FOLDER=str(tmp_path),
        UPLOAD_FILE_TYPES="png",
    )


@pytest.fixture
def app(upload_settings):
    return create_app(upload_settings)


@pytest.fixture
def records(app):
    """Capture middleware records; attached after create_app resets logging."""
    middleware_logger = logging.getLogger("pad_image_upload.core.middleware")
    handler = ListHandler()
    middleware_logger.addHandler(handler)
    yield handler.records
    middleware_logger.removeHandler(handler)


def test_client_error_logged_as_warning(app, records):
    """Test a 4xx response is logged at WARNING with request details."""
    files = {"file": ("payload.exe", io.BytesIO(b"MZ"), "application/octet-stream")}

    response = TestClient(app).post(UPLOAD_URL, files=files)

    assert response.status_code == 400
    assert len(records) == 1
    record = records[0]
    assert record.levelno == logging.WARNING
    assert record.http_status == 400
    assert record.pad_id == "pad-7"
    assert record.method == "POST"
    assert record.path == UPLOAD_URL
    assert record.duration_ms >= 0


def test_server_error_logged_as_error(app, upload_settings, records):
    """Test a 5xx response is logged at ERROR."""
    app.state.upload_context = UploadContext(
        settings=upload_settings,
        policy=upload_settings.upload_policy,
        storage=RecordingStorage(fail_after=1),
    )
    files = {"file": ("diagram.png", io.BytesIO(b"png data"), "image/png")}

    response = TestClient(app).post(UPLOAD_URL, files=files)

    assert response.status_code == 502
    assert len(records) == 1
    assert records[0].levelno == logging.ERROR
    assert records[0].http_status == 502
    assert records[0].pad_id == "pad-7"


def test_success_not_logged(app, records):
    """Test successful responses produce no middleware records."""
    files = {"file": ("diagram.png", io.BytesIO(b"png data"), "image/png")}

    response = TestClient(app).post(UPLOAD_URL, files=files)

    assert response.status_code == 201
    assert records == []
