import os
from collections.abc import Generator
from pathlib import Path
from typing import Any

import psycopg
import pytest

from claimdocs.config.settings import Settings
from claimdocs.database.connection import close_pool, get_connection, init_pool
from claimdocs.database.migrate import apply_migrations
from claimdocs.documents.models import Document, UploadedFile
from claimdocs.services.document_service import DocumentService, build_document_service
from claimdocs.storage.local_adapter import LocalFileStorage
from claimdocs.storage.router import SchemeRouter


def _test_settings() -> Settings:
    with pytest.MonkeyPatch.context() as mp:
        for key, value in (
            ("DB_DATABASE", "claimdocs_test"),
            ("OCR_PROVIDER", "example"),
            ("STORAGE_BACKEND", "local"),
        ):
            mp.setenv(key, os.environ.get(key, value))
        return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
        with get_connection() as conn:
            apply_migrations(conn)
    except Exception as e:
        close_pool()
        pytest.skip(
            f"PostgreSQL test DB not available: {e}. "
            "Set DB_* env to point at an empty claimdocs_test database"
        )
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def integration_cleanup(integration_pool: None) -> Generator[list[str], None, None]:
    """Document ids to delete after the test. Versions, metadata and jobs cascade."""
    cleanup: list[str] = []
    yield cleanup
    if not cleanup:
        return
    with get_connection() as conn:
        with conn.cursor() as cur:
            for document_id in cleanup:
                cur.execute("DELETE FROM documents WHERE document_id = %s", (document_id,))
        conn.commit()


@pytest.fixture
def files_root(tmp_path: Path) -> Path:
    return tmp_path


@pytest.fixture
def local_storage(files_root: Path, test_settings: Settings) -> SchemeRouter:
    return SchemeRouter(
        LocalFileStorage(
            files_root,
            test_settings.storage_public_base_url,
            test_settings.storage_signing_secret,
        )
    )


@pytest.fixture
def document_service(
    test_settings: Settings,
    local_storage: SchemeRouter,
    integration_pool: None,
) -> DocumentService:
    return build_document_service(test_settings, storage=local_storage)


@pytest.fixture
def seed_document(
    document_service: DocumentService,
    integration_cleanup: list[str],
    sample_pdf_bytes: bytes,
) -> Document:
    """Version 1 of a salary slip, uploaded through the service with a pending job."""
    document = document_service.upload(
        UploadedFile(filename="salary_slip.pdf", mime_type="application/pdf", content=sample_pdf_bytes),
        application_id="app-integration",
        document_type="salary_slip",
        user_id="user-integration",
    )
    integration_cleanup.append(document.document_id)
    return document
