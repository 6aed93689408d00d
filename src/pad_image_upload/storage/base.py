"""Abstract storage backend interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import AsyncIterator


@dataclass(frozen=True)
class StoredObject:
    """Location descriptor for a persisted upload."""

    key: str
    location: str
    size: int


class StorageBackend(ABC):
    """Abstract base class for storage backends.

    Implementations must be safe for concurrent ``put`` calls and keep no
    per-upload state on the instance.
    """

    @abstractmethod
    async def put(
        self,
        key: str,
        stream: AsyncIterator[bytes],
        content_type: str,
        size_hint: int | None = None,
    ) -> StoredObject:
        """Persist a byte stream under a destination key.

        The stream is consumed in order. If it raises, or the calling task
        is cancelled, the write is abandoned, any partial artifact is
        removed and the original exception propagates unchanged.

        Args:
            key: Destination key (``{pad}/{token}{ext}``)
            stream: Async iterator of file chunks
            content_type: MIME type declared by the client
            size_hint: Expected size in bytes, if known

        Returns:
            Location and size of the stored object

        Raises:
            StorageFailureError: If the storage medium fails
        """
        pass

    @abstractmethod
    def get_location(self, key: str) -> str:
        """Return the caller-resolvable location for a key."""
        pass

    @abstractmethod
    def get_backend_name(self) -> str:
        """Return backend identifier."""
        pass
