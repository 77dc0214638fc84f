from dataclasses import replace

from claimdocs.database.connection import ConnectionFactory
from claimdocs.database.repositories.document_repository import DocumentRepository
from claimdocs.database.repositories.metadata_repository import MetadataRepository
from claimdocs.documents.exceptions import JobSupersededError
from claimdocs.documents.models import (
    STATUS_FAILED,
    STATUS_PENDING,
    DocumentMetadata,
    ValidationIssue,
    ValidationResults,
)
from claimdocs.extraction.engine import OcrEngine
from claimdocs.logging.logger import Log
from claimdocs.pdf.base import BasePdfInspector
from claimdocs.pdf.exceptions import PdfInspectionError
from claimdocs.processor.pipeline import PipelineContext, PipelineStep
from claimdocs.storage.base import BaseObjectStorage
from claimdocs.validation.engine import quality_for


class LoadDocumentStep(PipelineStep):
    def __init__(
        self,
        doc_repo: DocumentRepository,
        storage: BaseObjectStorage,
        connection_factory: ConnectionFactory,
    ) -> None:
        self._doc_repo = doc_repo
        self._storage = storage
        self._connection_factory = connection_factory

    def run(self, context: PipelineContext) -> PipelineContext:
        with self._connection_factory() as conn:
            document = self._doc_repo.find_by_id(conn, context.document_id)
        if document.version != context.document_version:
            raise JobSupersededError(
                f"Document {context.document_id} is at version {document.version}, "
                f"job targets version {context.document_version}"
            )
        context.document = document
        context.raw_bytes = self._storage.read(document.location)
        Log.info(f"Loaded {len(context.raw_bytes)} bytes for document {context.document_id}")
        return context


class ExtractStep(PipelineStep):
    def __init__(self, engine: OcrEngine) -> None:
        self._engine = engine

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.document is None:
            raise ValueError("PipelineContext.document must be set before extraction")
        context.extraction = self._engine.extract(context.raw_bytes, context.document.document_type)
        return context


class InspectPdfStep(PipelineStep):
    """Records page count and dimensions. Non-PDFs and unreadable PDFs are skipped."""

    def __init__(self, inspector: BasePdfInspector) -> None:
        self._inspector = inspector

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.document is None or context.document.mime_type != "application/pdf":
            return context
        try:
            context.page_info = self._inspector.inspect(context.raw_bytes)
        except PdfInspectionError as exc:
            Log.warning(f"PDF inspection skipped for document {context.document_id}: {exc}")
        return context


class PersistExtractionStep(PipelineStep):
    def __init__(
        self,
        doc_repo: DocumentRepository,
        metadata_repo: MetadataRepository,
        connection_factory: ConnectionFactory,
    ) -> None:
        self._doc_repo = doc_repo
        self._metadata_repo = metadata_repo
        self._connection_factory = connection_factory

    def run(self, context: PipelineContext) -> PipelineContext:
        document = context.document
        extraction = context.extraction
        if document is None or extraction is None:
            raise ValueError("PipelineContext.document and extraction must be set before persist")

        if extraction.success and extraction.ocr_data is not None:
            updated = replace(
                document,
                validation_status=STATUS_PENDING,
                ocr_data=extraction.ocr_data,
                confidence_score=extraction.confidence_score,
                validation_results=None,
            )
            text = extraction.ocr_data.extracted_text
        else:
            updated = replace(
                document,
                validation_status=STATUS_FAILED,
                ocr_data=None,
                confidence_score=None,
                validation_results=ValidationResults(
                    is_valid=False,
                    errors=[
                        ValidationIssue(
                            field="ocr",
                            message=f"OCR processing failed: {extraction.error}",
                            code="OCR_PROCESSING_FAILED",
                        )
                    ],
                ),
            )
            text = ""

        page_info = context.page_info
        metadata = DocumentMetadata(
            is_readable=bool(text),
            has_text=bool(text.strip()),
            quality=quality_for(updated.confidence_score),
            page_count=page_info.page_count if page_info else None,
            dimensions=page_info.dimensions if page_info else None,
        )

        with self._connection_factory() as conn:
            context.document = self._doc_repo.update(conn, updated, expected_revision=document.revision)
            self._metadata_repo.upsert(conn, document.document_id, metadata)

        Log.info(
            f"Document {document.document_id} v{document.version} extraction persisted "
            f"with status {updated.validation_status}"
        )
        return context
