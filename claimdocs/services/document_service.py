"""Document lifecycle orchestration.

State machine: processing -> pending | failed (extraction) -> validated | failed
(validate) -> processing again on a new version or reprocess request.
Extraction never runs inline: every transition into processing enqueues a
job for the worker pool in the same transaction.
"""

import uuid
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Any

from claimdocs.config.settings import Settings
from claimdocs.database.connection import ConnectionFactory, transaction
from claimdocs.database.repositories.document_repository import DocumentRepository
from claimdocs.database.repositories.job_repository import JobRepository
from claimdocs.database.repositories.metadata_repository import MetadataRepository
from claimdocs.database.repositories.version_repository import VersionRepository
from claimdocs.documents.exceptions import (
    DocumentNotFoundError,
    StaleDocumentError,
    StorageError,
)
from claimdocs.documents.models import (
    MAX_FILE_SIZE_BYTES,
    STATUS_FAILED,
    STATUS_PROCESSING,
    STATUS_VALIDATED,
    ConfidenceSummary,
    Document,
    DocumentMetadata,
    DocumentSearchQuery,
    DocumentStatistics,
    DocumentVersion,
    UploadedFile,
    ValidationResults,
    ValidationRule,
)
from claimdocs.logging.logger import Log
from claimdocs.services.uploads import stored_file_name, validate_upload
from claimdocs.services.version_manager import VersionManager
from claimdocs.storage.base import BaseObjectStorage
from claimdocs.storage.factory import StorageFactory
from claimdocs.validation.engine import ValidationEngine


class DocumentService:
    """Operations exposed to the HTTP layer."""

    def __init__(
        self,
        doc_repo: DocumentRepository,
        metadata_repo: MetadataRepository,
        job_repo: JobRepository,
        storage: BaseObjectStorage,
        validation_engine: ValidationEngine,
        version_manager: VersionManager,
        *,
        version_repo: VersionRepository | None = None,
        max_file_size: int = MAX_FILE_SIZE_BYTES,
        confidence_threshold: float = 0.8,
        bulk_concurrency: int = 4,
        signed_url_ttl_seconds: int = 3600,
        connection_factory: ConnectionFactory = transaction,
    ) -> None:
        self._doc_repo = doc_repo
        self._metadata_repo = metadata_repo
        self._job_repo = job_repo
        self._version_repo = version_repo if version_repo is not None else VersionRepository()
        self._storage = storage
        self._engine = validation_engine
        self._versions = version_manager
        self._max_file_size = max_file_size
        self._confidence_threshold = confidence_threshold
        self._bulk_concurrency = max(1, bulk_concurrency)
        self._signed_url_ttl_seconds = signed_url_ttl_seconds
        self._connection_factory = connection_factory

    def upload(
        self,
        file: UploadedFile,
        application_id: str,
        document_type: str,
        user_id: str,
    ) -> Document:
        """Store version 1 of a new document and queue its extraction.

        Raises:
            InvalidUploadError: if the file is empty, too large or of a disallowed type.
            StorageError: if the bytes cannot be stored.
        """
        validate_upload(file, self._max_file_size)
        document_id = str(uuid.uuid4())
        location = self._storage.store(file.content, document_id, 1, file.filename, file.mime_type)

        try:
            with self._connection_factory() as conn:
                document = self._doc_repo.create(
                    conn,
                    Document(
                        document_id=document_id,
                        application_id=application_id,
                        file_name=stored_file_name(document_id, 1, file.filename),
                        original_name=file.filename,
                        mime_type=file.mime_type,
                        file_size=file.size,
                        location=location,
                        document_type=document_type,
                        uploaded_by=user_id,
                        validation_status=STATUS_PROCESSING,
                        version=1,
                    ),
                )
                self._job_repo.enqueue(conn, document_id, 1)
        except Exception:
            self._storage.delete(location)
            raise

        Log.info(f"Document {document_id} uploaded for application {application_id}, extraction queued")
        return document

    def get(self, document_id: str) -> Document:
        """Raises DocumentNotFoundError when the id is unknown."""
        with self._connection_factory() as conn:
            return self._doc_repo.find_by_id(conn, document_id)

    def search(self, query: DocumentSearchQuery) -> tuple[list[Document], int]:
        with self._connection_factory() as conn:
            return self._doc_repo.search(conn, query)

    def list_by_application(self, application_id: str) -> list[Document]:
        with self._connection_factory() as conn:
            return self._doc_repo.find_by_application(conn, application_id)

    def delete(self, document_id: str) -> None:
        """Remove the document row, then the stored bytes of every version.

        Storage failures after the row is gone are logged, not raised.
        """
        with self._connection_factory() as conn:
            document = self._doc_repo.find_by_id(conn, document_id, for_update=True)
            versions = self._version_repo.list_for_document(conn, document_id)
            locations = dict.fromkeys([document.location, *(v.location for v in versions)])
            self._doc_repo.delete(conn, document_id)
        Log.info(f"Document {document_id} deleted with {len(versions)} versions")

        for location in locations:
            try:
                self._storage.delete(location)
            except StorageError as exc:
                Log.error(
                    f"Failed to remove stored bytes of deleted document: {exc}",
                    document_id=document_id,
                    location=location,
                )

    def validate(
        self,
        document_id: str,
        application_data: Mapping[str, Any] | None = None,
        rules: Sequence[ValidationRule] | None = None,
    ) -> ValidationResults:
        """Run the validation engine and persist its verdict.

        Raises:
            DocumentNotFoundError: if the document does not exist.
            StaleDocumentError: if the document changed while being validated.
        """
        with self._connection_factory() as conn:
            document = self._doc_repo.find_by_id(conn, document_id)
            results = self._engine.validate(document, application_data, rules)

            stored = self._metadata_repo.get(conn, document_id)
            if stored is not None:
                results = replace(
                    results,
                    metadata=replace(
                        results.metadata,
                        page_count=stored.page_count,
                        dimensions=stored.dimensions,
                    ),
                )

            status = STATUS_VALIDATED if results.is_valid else STATUS_FAILED
            self._doc_repo.update(
                conn,
                replace(document, validation_status=status, validation_results=results),
                expected_revision=document.revision,
            )
            self._metadata_repo.upsert(conn, document_id, results.metadata)

        Log.info(
            f"Document {document_id} {status}: {len(results.errors)} errors, "
            f"{len(results.warnings)} warnings"
        )
        return results

    def reprocess_ocr(self, document_id: str) -> Document:
        """Move the document back to processing and queue a fresh extraction."""
        with self._connection_factory() as conn:
            document = self._doc_repo.find_by_id(conn, document_id, for_update=True)
            updated = self._doc_repo.update(
                conn,
                replace(document, validation_status=STATUS_PROCESSING, validation_results=None),
                expected_revision=document.revision,
            )
            self._job_repo.enqueue(conn, document_id, document.version)
        Log.info(f"Document {document_id} queued for OCR reprocessing")
        return updated

    def bulk_validate(
        self,
        application_id: str,
        application_data: Mapping[str, Any] | None = None,
    ) -> dict[str, ValidationResults]:
        """Validate every document of an application that already has OCR data.

        A document that changes or disappears mid-run is left out of the result
        map; the verdicts of the others are still returned.
        """
        documents = self.list_by_application(application_id)
        candidates = [d.document_id for d in documents if d.ocr_data is not None]
        Log.info(
            f"Bulk validating {len(candidates)} of {len(documents)} documents "
            f"for application {application_id}"
        )
        if not candidates:
            return {}

        with ThreadPoolExecutor(
            max_workers=min(self._bulk_concurrency, len(candidates)),
            thread_name_prefix="bulk-validate",
        ) as pool:
            futures = {
                doc_id: pool.submit(self.validate, doc_id, application_data)
                for doc_id in candidates
            }

        verdicts: dict[str, ValidationResults] = {}
        for doc_id, future in futures.items():
            try:
                verdicts[doc_id] = future.result()
            except (StaleDocumentError, DocumentNotFoundError) as exc:
                Log.warning(
                    f"Skipped document in bulk validation: {exc}",
                    application_id=application_id,
                    document_id=doc_id,
                )
        return verdicts

    def confidence_summary(self, application_id: str) -> ConfidenceSummary:
        documents = self.list_by_application(application_id)
        processed = [d for d in documents if d.confidence_score is not None]
        scores = [d.confidence_score for d in processed if d.confidence_score is not None]
        return ConfidenceSummary(
            average_confidence=sum(scores) / len(scores) if scores else 0.0,
            low_confidence_documents=[
                d.document_id
                for d in processed
                if d.confidence_score is not None and d.confidence_score < self._confidence_threshold
            ],
            total_documents=len(documents),
            processed_documents=len(processed),
        )

    def statistics(self, application_id: str | None = None) -> DocumentStatistics:
        with self._connection_factory() as conn:
            return self._doc_repo.statistics(conn, application_id)

    def upload_version(self, document_id: str, file: UploadedFile, user_id: str) -> Document:
        return self._versions.upload_new_version(document_id, file, user_id)

    def list_versions(self, document_id: str) -> list[DocumentVersion]:
        return self._versions.list_versions(document_id)

    def restore_version(self, document_id: str, version_number: int, user_id: str) -> Document:
        return self._versions.restore(document_id, version_number, user_id)

    def get_metadata(self, document_id: str) -> DocumentMetadata | None:
        with self._connection_factory() as conn:
            self._doc_repo.find_by_id(conn, document_id)
            return self._metadata_repo.get(conn, document_id)

    def update_metadata(self, document_id: str, metadata: DocumentMetadata) -> DocumentMetadata:
        with self._connection_factory() as conn:
            self._doc_repo.find_by_id(conn, document_id)
            self._metadata_repo.upsert(conn, document_id, metadata)
        return metadata

    def download_url(self, document_id: str, ttl_seconds: int | None = None) -> str:
        document = self.get(document_id)
        ttl = ttl_seconds if ttl_seconds is not None else self._signed_url_ttl_seconds
        return self._storage.signed_url(document.location, ttl)


def build_document_service(
    settings: Settings,
    storage: BaseObjectStorage | None = None,
    connection_factory: ConnectionFactory = transaction,
) -> DocumentService:
    """Build a DocumentService wired to the configured storage and database."""
    storage = storage if storage is not None else StorageFactory.create(settings)
    doc_repo = DocumentRepository()
    version_repo = VersionRepository()
    job_repo = JobRepository(settings.max_job_attempts)
    version_manager = VersionManager(
        doc_repo,
        version_repo,
        job_repo,
        storage,
        max_file_size=settings.max_file_size_bytes,
        connection_factory=connection_factory,
    )
    return DocumentService(
        doc_repo,
        MetadataRepository(),
        job_repo,
        storage,
        ValidationEngine(
            confidence_threshold=settings.ocr_confidence_threshold,
            max_file_size=settings.max_file_size_bytes,
        ),
        version_manager,
        version_repo=version_repo,
        max_file_size=settings.max_file_size_bytes,
        confidence_threshold=settings.ocr_confidence_threshold,
        bulk_concurrency=settings.bulk_validate_concurrency,
        signed_url_ttl_seconds=settings.signed_url_ttl_seconds,
        connection_factory=connection_factory,
    )
