"""Version history of documents.

Snapshots are append-only: the live row's processing state is copied into
document_versions before any mutation, tagged with the live version number.
Both upload of a new version and restore bump the version counter by one.
"""

from dataclasses import replace
from typing import Any

import psycopg

from claimdocs.database.connection import ConnectionFactory, transaction
from claimdocs.database.repositories.document_repository import DocumentRepository
from claimdocs.database.repositories.job_repository import JobRepository
from claimdocs.database.repositories.version_repository import VersionRepository
from claimdocs.documents.models import (
    MAX_FILE_SIZE_BYTES,
    STATUS_PROCESSING,
    Document,
    DocumentVersion,
    UploadedFile,
)
from claimdocs.logging.logger import Log
from claimdocs.services.uploads import stored_file_name, validate_upload
from claimdocs.storage.base import BaseObjectStorage


class VersionManager:
    def __init__(
        self,
        doc_repo: DocumentRepository,
        version_repo: VersionRepository,
        job_repo: JobRepository,
        storage: BaseObjectStorage,
        *,
        max_file_size: int = MAX_FILE_SIZE_BYTES,
        connection_factory: ConnectionFactory = transaction,
    ) -> None:
        self._doc_repo = doc_repo
        self._version_repo = version_repo
        self._job_repo = job_repo
        self._storage = storage
        self._max_file_size = max_file_size
        self._connection_factory = connection_factory

    def create_version(
        self,
        conn: psycopg.Connection[Any],
        document: Document,
        created_by: str,
    ) -> DocumentVersion:
        """Snapshot the document's current state under its current version number.

        Raises:
            ConflictError: if that version number was already snapshotted.
        """
        snapshot = DocumentVersion(
            document_id=document.document_id,
            version_number=document.version,
            location=document.location,
            file_name=document.file_name,
            original_name=document.original_name,
            mime_type=document.mime_type,
            file_size=document.file_size,
            validation_status=document.validation_status,
            validation_results=document.validation_results,
            ocr_data=document.ocr_data,
            confidence_score=document.confidence_score,
            created_by=created_by,
        )
        return self._version_repo.create(conn, snapshot)

    def upload_new_version(self, document_id: str, file: UploadedFile, user_id: str) -> Document:
        """Store new bytes as version current+1 and queue extraction for it."""
        validate_upload(file, self._max_file_size)

        location: str | None = None
        try:
            with self._connection_factory() as conn:
                document = self._doc_repo.find_by_id(conn, document_id, for_update=True)
                self.create_version(conn, document, user_id)

                new_version = document.version + 1
                location = self._storage.store(
                    file.content, document_id, new_version, file.filename, file.mime_type
                )
                updated = self._doc_repo.update(
                    conn,
                    replace(
                        document,
                        file_name=stored_file_name(document_id, new_version, file.filename),
                        original_name=file.filename,
                        mime_type=file.mime_type,
                        file_size=file.size,
                        location=location,
                        validation_status=STATUS_PROCESSING,
                        validation_results=None,
                        ocr_data=None,
                        confidence_score=None,
                        version=new_version,
                    ),
                    expected_revision=document.revision,
                )
                self._job_repo.enqueue(conn, document_id, new_version)
        except Exception:
            if location is not None:
                self._storage.delete(location)
            raise

        Log.info(f"Document {document_id} moved to version {updated.version}, extraction queued")
        return updated

    def restore(self, document_id: str, target_version: int, user_id: str) -> Document:
        """Bring back a snapshot's content under a new version number.

        Raises:
            DocumentNotFoundError: if the document does not exist.
            VersionNotFoundError: if the target snapshot does not exist.
        """
        with self._connection_factory() as conn:
            document = self._doc_repo.find_by_id(conn, document_id, for_update=True)
            target = self._version_repo.get(conn, document_id, target_version)
            self.create_version(conn, document, user_id)

            new_version = document.version + 1
            restored = self._doc_repo.update(
                conn,
                replace(
                    document,
                    location=target.location,
                    file_name=target.file_name,
                    original_name=target.original_name,
                    mime_type=target.mime_type,
                    file_size=target.file_size,
                    validation_status=target.validation_status,
                    validation_results=target.validation_results,
                    ocr_data=target.ocr_data,
                    confidence_score=target.confidence_score,
                    version=new_version,
                ),
                expected_revision=document.revision,
            )
            if restored.validation_status == STATUS_PROCESSING:
                self._job_repo.enqueue(conn, document_id, new_version)

        Log.info(
            f"Document {document_id} restored from version {target_version} as version {new_version}"
        )
        return restored

    def list_versions(self, document_id: str) -> list[DocumentVersion]:
        """Snapshots of an existing document, newest first."""
        with self._connection_factory() as conn:
            self._doc_repo.find_by_id(conn, document_id)
            return self._version_repo.list_for_document(conn, document_id)
