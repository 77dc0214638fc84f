from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from claimdocs.documents.exceptions import StorageError
from claimdocs.storage.factory import StorageFactory
from claimdocs.storage.local_adapter import LocalFileStorage
from claimdocs.storage.router import SchemeRouter


def _backend(scheme: str) -> MagicMock:
    backend = MagicMock()
    backend.scheme = scheme
    return backend


class TestSchemeRouter:
    def test_store_goes_to_primary(self) -> None:
        primary, other = _backend("s3"), _backend("file")
        primary.store.return_value = "s3://claims/documents/doc-1/v1.pdf"
        router = SchemeRouter(primary, other)

        location = router.store(b"x", "doc-1", 1, "a.pdf", "application/pdf")

        assert location == "s3://claims/documents/doc-1/v1.pdf"
        other.store.assert_not_called()

    def test_routes_by_scheme(self) -> None:
        primary, other = _backend("s3"), _backend("file")
        router = SchemeRouter(primary, other)

        router.read("file://documents/doc-1/v1.pdf")
        router.delete("s3://claims/documents/doc-1/v2.pdf")
        router.signed_url("file://documents/doc-1/v1.pdf", 60)

        other.read.assert_called_once_with("file://documents/doc-1/v1.pdf")
        primary.delete.assert_called_once_with("s3://claims/documents/doc-1/v2.pdf")
        other.signed_url.assert_called_once_with("file://documents/doc-1/v1.pdf", 60)

    def test_unknown_scheme_raises(self) -> None:
        router = SchemeRouter(_backend("file"))
        with pytest.raises(StorageError, match="No storage backend registered"):
            router.read("gs://bucket/key")

    def test_handle_without_scheme_raises(self) -> None:
        router = SchemeRouter(_backend("file"))
        with pytest.raises(StorageError):
            router.read("/abs/path.pdf")


class TestStorageFactory:
    def _settings(self, backend: str, root: Path) -> MagicMock:
        return MagicMock(
            storage_backend=backend,
            storage_root=str(root),
            storage_public_base_url="/files",
            storage_signing_secret="secret",
            s3_bucket="claims",
            aws_region="us-east-1",
            aws_access_key_id="",
            aws_secret_access_key="",
        )

    def test_local_backend(self, tmp_path: Path) -> None:
        router = StorageFactory.create(self._settings("local", tmp_path))

        location = router.store(b"x", "doc-1", 1, "a.pdf", "application/pdf")

        assert router.scheme == "file"
        assert router.read(location) == b"x"

    @patch("claimdocs.storage.s3_adapter.boto3.client")
    def test_s3_backend_keeps_local_handles_readable(self, _client: MagicMock, tmp_path: Path) -> None:
        LocalFileStorage(tmp_path, "/files", "secret").store(b"old", "doc-1", 1, "a.pdf", "application/pdf")

        router = StorageFactory.create(self._settings("S3", tmp_path))

        assert router.scheme == "s3"
        assert router.read("file://documents/doc-1/v1.pdf") == b"old"

    def test_unknown_backend_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="Unknown storage backend"):
            StorageFactory.create(self._settings("gcs", tmp_path))
