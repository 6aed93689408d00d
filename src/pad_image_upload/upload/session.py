"""Upload session: one streaming upload attempt from file part to result.

A session moves through ``idle -> receiving -> writing`` and ends in
exactly one of ``succeeded`` or ``failed``. Whatever goes wrong (policy
rejection, size overflow, client disconnect, broken framing, storage
error) is turned into a single UploadFailure; errors never escape
``run()`` except task cancellation, which is recorded and re-raised.
"""

import asyncio
import logging
from contextlib import aclosing
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Callable

from pad_image_upload.core.exceptions import (
    ClientAbortedError,
    ImageUploadError,
    InternalUploadError,
    RejectionReason,
    ValidationRejectedError,
)
from pad_image_upload.core.logging import upload_key_context
from pad_image_upload.storage.base import StorageBackend
from pad_image_upload.upload.ingest import FilePart
from pad_image_upload.upload.keys import generate_destination_key
from pad_image_upload.upload.results import UploadFailure, UploadResult, UploadSuccess
from pad_image_upload.upload.validation import Rejected, UploadPolicy, check_policy

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    """Upload session lifecycle states."""

    IDLE = "idle"
    RECEIVING = "receiving"
    WRITING = "writing"
    SUCCEEDED = "succeeded"  # terminal
    FAILED = "failed"  # terminal


@dataclass
class UploadRequest:
    """Everything one upload attempt needs, fixed for its duration."""

    pad_id: str
    part: FilePart
    policy: UploadPolicy

    @property
    def filename(self) -> str:
        return self.part.filename

    @property
    def content_type(self) -> str:
        return self.part.content_type

    @property
    def declared_size(self) -> int | None:
        return self.part.declared_size


class UploadSession:
    """Drive one UploadRequest into a storage backend."""

    def __init__(
        self,
        request: UploadRequest,
        storage: StorageBackend,
        key_factory: Callable[[str, str], str] = generate_destination_key,
    ):
        self.request = request
        self.storage = storage
        self._key_factory = key_factory
        self.state = SessionState.IDLE
        self.key: str | None = None
        self.bytes_received = 0
        self._result: UploadResult | None = None

    @property
    def result(self) -> UploadResult | None:
        return self._result

    def resolve(self, result: UploadResult) -> bool:
        """Record the terminal result; only the first call has any effect.

        Returns:
            True if this call recorded the result, False if one already existed
        """
        if self._result is not None:
            logger.debug(
                "Ignoring repeated upload result",
                extra={"pad_id": self.request.pad_id, "ignored": type(result).__name__},
            )
            return False

        self._result = result
        self.state = SessionState.SUCCEEDED if result.succeeded else SessionState.FAILED
        return True

    async def run(self) -> UploadResult:
        """Validate, stream to storage and return the terminal result."""
        if self.state is not SessionState.IDLE:
            raise RuntimeError(f"Upload session already {self.state.value}")

        self.state = SessionState.RECEIVING
        context_token = upload_key_context.set(None)
        try:
            await self._receive()
        except ImageUploadError as e:
            self._fail(e)
        except asyncio.CancelledError:
            self._fail(ClientAbortedError("Upload cancelled"))
            raise
        except Exception as e:
            logger.error(
                f"Unexpected error during upload: {e}",
                extra={"pad_id": self.request.pad_id},
                exc_info=True,
            )
            self._fail(InternalUploadError("Internal server error"))
        finally:
            upload_key_context.reset(context_token)

        return self._result

    async def _receive(self) -> None:
        request = self.request
        outcome = check_policy(request.filename, request.declared_size, request.policy)
        if isinstance(outcome, Rejected):
            raise ValidationRejectedError(outcome.reason, outcome.message)

        self.key = self._key_factory(request.pad_id, request.filename)
        upload_key_context.set(self.key)
        self.state = SessionState.WRITING

        async with aclosing(self._metered()) as stream:
            stored = await self.storage.put(
                self.key,
                stream,
                content_type=request.content_type,
                size_hint=request.declared_size,
            )

        if self.resolve(
            UploadSuccess(
                location=stored.location,
                metadata={
                    "key": stored.key,
                    "pad_id": request.pad_id,
                    "file_name": request.filename,
                    "content_type": request.content_type,
                    "size_bytes": self.bytes_received,
                    "storage_backend": self.storage.get_backend_name(),
                },
            )
        ):
            logger.info(
                f"Upload completed: pad_id={request.pad_id}, key={self.key}, "
                f"backend={self.storage.get_backend_name()}, size={self.bytes_received}"
            )

    async def _metered(self) -> AsyncIterator[bytes]:
        """Forward part bytes in order, enforcing the size ceiling as they arrive."""
        max_size = self.request.policy.max_file_size
        async with aclosing(self.request.part.iter_bytes()) as chunks:
            async for chunk in chunks:
                self.bytes_received += len(chunk)
                if max_size is not None and self.bytes_received > max_size:
                    raise ValidationRejectedError(
                        RejectionReason.SIZE,
                        f"File size exceeds maximum allowed size of {max_size} bytes",
                    )
                yield chunk

    def _fail(self, error: ImageUploadError) -> None:
        self.request.part.abort()
        if self.resolve(UploadFailure.from_error(error)):
            logger.warning(
                f"Upload failed: {error.message}",
                extra={
                    "pad_id": self.request.pad_id,
                    "error_kind": error.error_kind,
                    "reason": error.reason,
                    "bytes_received": self.bytes_received,
                },
            )
