from claimdocs.documents.exceptions import StorageError
from claimdocs.storage.base import BaseObjectStorage


class SchemeRouter(BaseObjectStorage):
    """Writes to the configured backend, routes everything else by handle scheme.

    Handles written before a backend switch stay readable as long as their
    backend is registered.
    """

    def __init__(self, primary: BaseObjectStorage, *others: BaseObjectStorage) -> None:
        self._primary = primary
        self._backends = {backend.scheme: backend for backend in (primary, *others)}
        self.scheme = primary.scheme

    def store(
        self,
        data: bytes,
        document_id: str,
        version: int,
        filename: str,
        mime_type: str,
    ) -> str:
        return self._primary.store(data, document_id, version, filename, mime_type)

    def read(self, location: str) -> bytes:
        return self._backend_for(location).read(location)

    def delete(self, location: str) -> None:
        self._backend_for(location).delete(location)

    def signed_url(self, location: str, ttl_seconds: int) -> str:
        return self._backend_for(location).signed_url(location, ttl_seconds)

    def owns(self, location: str) -> bool:
        return any(backend.owns(location) for backend in self._backends.values())

    def _backend_for(self, location: str) -> BaseObjectStorage:
        scheme, separator, _ = location.partition("://")
        backend = self._backends.get(scheme) if separator else None
        if backend is None:
            raise StorageError(f"No storage backend registered for location '{location}'")
        return backend
