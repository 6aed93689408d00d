"""Incremental multipart/form-data ingest.

The request body is parsed chunk by chunk with python-multipart while the
upload session consumes the file part. Reading is pull-based: a new chunk
is only read from the client when the consumer asks for more data, which
gives the storage write natural backpressure.
"""

import logging
from collections import deque
from enum import Enum
from typing import AsyncIterable, AsyncIterator, Mapping

import python_multipart as multipart
from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import parse_options_header
from starlette.requests import ClientDisconnect

from pad_image_upload.core.exceptions import ClientAbortedError, MalformedUploadError

logger = logging.getLogger(__name__)


class MessageType(Enum):
    PART_BEGIN = 1
    PART_DATA = 2
    PART_END = 3
    HEADER_FIELD = 4
    HEADER_VALUE = 5
    HEADER_END = 6
    HEADERS_FINISHED = 7
    END = 8


class FilePart:
    """A file part of a multipart body, readable once as a byte stream."""

    def __init__(
        self,
        ingest: "MultipartIngest",
        field_name: str,
        filename: str,
        content_type: str,
        declared_size: int | None = None,
    ):
        self._ingest = ingest
        self.field_name = field_name
        self.filename = filename
        self.content_type = content_type
        self.declared_size = declared_size

    def iter_bytes(self) -> AsyncIterator[bytes]:
        """Iterate the part's bytes in the order they were received."""
        return self._ingest.iter_part_data()

    def abort(self) -> None:
        """Stop reading this part; the rest of the body will be discarded."""
        self._ingest.abort()

    def __repr__(self) -> str:
        return (
            f"FilePart(field_name={self.field_name!r}, filename={self.filename!r}, "
            f"content_type={self.content_type!r})"
        )


class MultipartIngest:
    """Parse a multipart body from an async byte stream.

    Use as an async context manager: leaving the block drains whatever is
    left of the body and closes the body iterator, on every exit path.

    Raises:
        MalformedUploadError: Missing boundary, broken framing or a body
            that ends before the closing boundary
        ClientAbortedError: The client disconnected while sending
    """

    def __init__(self, headers: Mapping[str, str], stream: AsyncIterable[bytes]):
        content_type, params = parse_options_header(headers.get("content-type", ""))
        if content_type != b"multipart/form-data":
            raise MalformedUploadError("Request body must be multipart/form-data")
        boundary = params.get(b"boundary")
        if not boundary:
            raise MalformedUploadError("Missing multipart boundary")

        self._chunks = aiter(stream)
        self._messages: deque[tuple[MessageType, bytes]] = deque()
        self._parser = multipart.MultipartParser(
            boundary,
            {
                "on_part_begin": self._on_part_begin,
                "on_part_data": self._on_part_data,
                "on_part_end": self._on_part_end,
                "on_header_field": self._on_header_field,
                "on_header_value": self._on_header_value,
                "on_header_end": self._on_header_end,
                "on_headers_finished": self._on_headers_finished,
                "on_end": self._on_end,
            },
        )
        self._header_field = b""
        self._header_value = b""
        self._headers: dict[bytes, bytes] = {}
        self._finished = False
        self._exhausted = False
        self.aborted = False
        self.closed = False
        self.bytes_read = 0

    # Parser callbacks

    def _on_part_begin(self) -> None:
        self._messages.append((MessageType.PART_BEGIN, b""))

    def _on_part_data(self, data: bytes, start: int, end: int) -> None:
        self._messages.append((MessageType.PART_DATA, bytes(data[start:end])))

    def _on_part_end(self) -> None:
        self._messages.append((MessageType.PART_END, b""))

    def _on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._messages.append((MessageType.HEADER_FIELD, bytes(data[start:end])))

    def _on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._messages.append((MessageType.HEADER_VALUE, bytes(data[start:end])))

    def _on_header_end(self) -> None:
        self._messages.append((MessageType.HEADER_END, b""))

    def _on_headers_finished(self) -> None:
        self._messages.append((MessageType.HEADERS_FINISHED, b""))

    def _on_end(self) -> None:
        self._messages.append((MessageType.END, b""))

    # Reading

    async def _read_chunk(self) -> bool:
        """Feed the next body chunk to the parser; False once the body ended."""
        try:
            chunk = await anext(self._chunks)
        except StopAsyncIteration:
            self._exhausted = True
            self._parser.finalize()
            if not self._finished:
                raise MalformedUploadError("Multipart body ended before the closing boundary")
            return False
        except ClientDisconnect as e:
            self._exhausted = True
            raise ClientAbortedError("Client disconnected during upload") from e

        if not chunk:
            return True
        self.bytes_read += len(chunk)
        try:
            self._parser.write(chunk)
        except MultipartParseError as e:
            raise MalformedUploadError(f"Malformed multipart body: {e}") from e
        return True

    async def _next_message(self) -> tuple[MessageType, bytes] | None:
        while not self._messages:
            if self._finished or self._exhausted:
                return None
            await self._read_chunk()
        message = self._messages.popleft()
        if message[0] is MessageType.END:
            self._finished = True
        return message

    async def next_file_part(self) -> FilePart | None:
        """Advance to the next part carrying a filename.

        Plain form fields are parsed and skipped. Returns None when the body
        has no (further) file part.
        """
        while True:
            message = await self._next_message()
            if message is None:
                return None

            message_type, data = message
            if message_type is MessageType.PART_BEGIN:
                self._headers = {}
            elif message_type is MessageType.HEADER_FIELD:
                self._header_field += data
            elif message_type is MessageType.HEADER_VALUE:
                self._header_value += data
            elif message_type is MessageType.HEADER_END:
                self._headers[self._header_field.lower()] = self._header_value
                self._header_field = b""
                self._header_value = b""
            elif message_type is MessageType.HEADERS_FINISHED:
                part = self._build_file_part()
                if part is not None:
                    return part

    def _build_file_part(self) -> FilePart | None:
        disposition, options = parse_options_header(
            self._headers.get(b"content-disposition", b"")
        )
        if disposition != b"form-data" or b"filename" not in options:
            return None

        declared_size = None
        raw_length = self._headers.get(b"content-length")
        if raw_length is not None:
            try:
                declared_size = int(raw_length)
            except ValueError:
                raise MalformedUploadError("Invalid part Content-Length header")

        return FilePart(
            self,
            field_name=options.get(b"name", b"").decode("latin-1"),
            filename=options[b"filename"].decode("utf-8", errors="replace"),
            content_type=(
                self._headers.get(b"content-type", b"").decode("latin-1")
                or "application/octet-stream"
            ),
            declared_size=declared_size,
        )

    async def iter_part_data(self) -> AsyncIterator[bytes]:
        """Yield data of the current part until its end boundary."""
        while not self.aborted:
            message = await self._next_message()
            if message is None:
                raise MalformedUploadError("Multipart body ended inside a file part")
            message_type, data = message
            if message_type is MessageType.PART_DATA:
                if data:
                    yield data
            elif message_type is MessageType.PART_END:
                return

    # Cleanup

    def abort(self) -> None:
        """Stop parsing; remaining body bytes will be discarded unread."""
        if not self.aborted:
            self.aborted = True
            self._messages.clear()

    async def drain(self) -> None:
        """Discard the rest of the body and close the body iterator."""
        if self.closed:
            return
        try:
            if not self._exhausted:
                async for _ in self._chunks:
                    pass
        except ClientDisconnect:
            logger.debug("Client disconnected while draining request body")
        finally:
            self._exhausted = True
            await self.aclose()

    async def aclose(self) -> None:
        if self.closed:
            return
        self.closed = True
        aclose = getattr(self._chunks, "aclose", None)
        if aclose is not None:
            await aclose()

    async def __aenter__(self) -> "MultipartIngest":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.drain()


async def discard_stream(stream: AsyncIterable[bytes]) -> None:
    """Read and drop a body that will not be parsed, tolerating disconnects."""
    try:
        async for _ in stream:
            pass
    except ClientDisconnect:
        logger.debug("Client disconnected while discarding request body")
