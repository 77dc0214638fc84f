import hashlib
import hmac
import time
from pathlib import Path
from urllib.parse import quote

from claimdocs.documents.exceptions import StorageError
from claimdocs.logging.logger import Log
from claimdocs.storage.base import BaseObjectStorage, storage_key


class LocalFileStorage(BaseObjectStorage):
    """Stores objects under a root directory. Handles look like file://documents/..."""

    scheme = "file"

    def __init__(self, root: Path, public_base_url: str, signing_secret: str) -> None:
        self._root = root
        self._public_base_url = public_base_url.rstrip("/")
        self._signing_secret = signing_secret.encode()

    def store(
        self,
        data: bytes,
        document_id: str,
        version: int,
        filename: str,
        mime_type: str,
    ) -> str:
        key = storage_key(document_id, version, filename)
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise StorageError(f"Failed to store {key}: {exc}") from exc
        return f"{self.scheme}://{key}"

    def read(self, location: str) -> bytes:
        path = self._path(self._key(location))
        try:
            return path.read_bytes()
        except FileNotFoundError as exc:
            raise StorageError(f"File not found: {location}") from exc
        except OSError as exc:
            raise StorageError(f"Failed to read {location}: {exc}") from exc

    def delete(self, location: str) -> None:
        path = self._path(self._key(location))
        try:
            path.unlink()
        except FileNotFoundError:
            Log.warning(f"Delete skipped, file already gone: {location}")
        except OSError as exc:
            raise StorageError(f"Failed to delete {location}: {exc}") from exc

    def signed_url(self, location: str, ttl_seconds: int) -> str:
        key = self._key(location)
        expires = int(time.time()) + ttl_seconds
        signature = self._sign(key, expires)
        return f"{self._public_base_url}/{quote(key)}?expires={expires}&signature={signature}"

    def verify_signature(self, key: str, expires: int, signature: str, now: float | None = None) -> bool:
        """Check a signed URL's parameters. Used by whatever serves the files."""
        current = time.time() if now is None else now
        if current > expires:
            return False
        return hmac.compare_digest(self._sign(key, expires), signature)

    def _sign(self, key: str, expires: int) -> str:
        message = f"{key}:{expires}".encode()
        return hmac.new(self._signing_secret, message, hashlib.sha256).hexdigest()

    def _path(self, key: str) -> Path:
        root = self._root.resolve()
        path = (root / key).resolve()
        if not path.is_relative_to(root):
            raise StorageError(f"Location escapes storage root: {key}")
        return path
