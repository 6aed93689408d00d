"""Pytest configuration and shared fixtures."""

from typing import AsyncIterator, Iterable

import pytest
from starlette.requests import ClientDisconnect

from pad_image_upload.core.exceptions import StorageFailureError
from pad_image_upload.storage.base import StorageBackend, StoredObject

BOUNDARY = "----padUploadBoundary7MA4YWxk"


class FakeBody:
    """Request body stream that records how far it was read and whether it was closed."""

    def __init__(
        self,
        chunks: Iterable[bytes],
        disconnect_after: int | None = None,
    ):
        self._chunks = chunks
        self.disconnect_after = disconnect_after
        self.bytes_sent = 0
        self.closed = False

    async def stream(self) -> AsyncIterator[bytes]:
        try:
            for chunk in self._chunks:
                if self.disconnect_after is not None and self.bytes_sent >= self.disconnect_after:
                    raise ClientDisconnect()
                self.bytes_sent += len(chunk)
                yield chunk
        finally:
            self.closed = True


class RecordingStorage(StorageBackend):
    """In-memory storage backend that records every call."""

    def __init__(self, fail_after: int | None = None):
        self.fail_after = fail_after
        self.calls: list[str] = []
        self.stored: dict[str, bytes] = {}
        self.discarded: list[str] = []

    async def put(self, key, stream, content_type, size_hint=None) -> StoredObject:
        self.calls.append(key)
        data = bytearray()
        try:
            async for chunk in stream:
                data.extend(chunk)
                if self.fail_after is not None and len(data) >= self.fail_after:
                    raise StorageFailureError("Failed to store file: disk full")
        except BaseException:
            self.discarded.append(key)
            raise
        self.stored[key] = bytes(data)
        return StoredObject(key=key, location=self.get_location(key), size=len(data))

    def get_location(self, key: str) -> str:
        return f"memory://{key}"

    def get_backend_name(self) -> str:
        return "memory"


def split(data: bytes, chunk_size: int) -> list[bytes]:
    return [data[i:i + chunk_size] for i in range(0, len(data), chunk_size)]


@pytest.fixture
def multipart_headers() -> dict[str, str]:
    return {"content-type": f"multipart/form-data; boundary={BOUNDARY}"}


@pytest.fixture
def build_multipart():
    """Build a multipart/form-data body from (name, filename, content_type, data) tuples."""

    def build(parts: list[tuple[str, str | None, str | None, bytes]]) -> bytes:
        body = b""
        for name, filename, content_type, data in parts:
            disposition = f'Content-Disposition: form-data; name="{name}"'
            if filename is not None:
                disposition += f'; filename="{filename}"'
            body += f"--{BOUNDARY}\r\n{disposition}\r\n".encode()
            if content_type:
                body += f"Content-Type: {content_type}\r\n".encode()
            body += b"\r\n" + data + b"\r\n"
        body += f"--{BOUNDARY}--\r\n".encode()
        return body

    return build


@pytest.fixture
def make_body():
    """Create a FakeBody from raw bytes split into fixed-size chunks."""

    def make(data: bytes, chunk_size: int = 4096, disconnect_after: int | None = None) -> FakeBody:
        return FakeBody(split(data, chunk_size), disconnect_after=disconnect_after)

    return make


@pytest.fixture
def recording_storage() -> RecordingStorage:
    return RecordingStorage()
