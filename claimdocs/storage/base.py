from abc import ABC, abstractmethod
from pathlib import PurePosixPath


def storage_key(document_id: str, version: int, filename: str) -> str:
    """Object key for one stored version: documents/{id}/v{n}{ext}."""
    extension = PurePosixPath(filename).suffix.lower()
    return f"documents/{document_id}/v{version}{extension}"


class BaseObjectStorage(ABC):
    """Contract for object storage backends.

    Locations are opaque handles prefixed with the backend's scheme, so a
    caller never needs to know which backend holds the bytes.
    """

    scheme: str

    @abstractmethod
    def store(
        self,
        data: bytes,
        document_id: str,
        version: int,
        filename: str,
        mime_type: str,
    ) -> str:
        """Persist bytes and return their location handle.

        Raises:
            StorageError: if the backend rejects the write.
        """

    @abstractmethod
    def read(self, location: str) -> bytes:
        """Return the bytes stored at location.

        Raises:
            StorageError: if the object is missing or unreadable.
        """

    @abstractmethod
    def delete(self, location: str) -> None:
        """Remove the object at location. Missing objects are ignored."""

    @abstractmethod
    def signed_url(self, location: str, ttl_seconds: int) -> str:
        """Return a time-limited download URL for location."""

    def owns(self, location: str) -> bool:
        return location.startswith(f"{self.scheme}://")

    def _key(self, location: str) -> str:
        return location[len(self.scheme) + 3 :]
