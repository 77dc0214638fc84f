from claimdocs.config.settings import Settings
from claimdocs.database.connection import ConnectionFactory, transaction
from claimdocs.database.models import JobRecord
from claimdocs.database.repositories.document_repository import DocumentRepository
from claimdocs.database.repositories.metadata_repository import MetadataRepository
from claimdocs.extraction.factory import build_ocr_engine
from claimdocs.logging.logger import Log
from claimdocs.pdf.factory import PdfInspectorFactory
from claimdocs.processor.pipeline import PipelineContext, PipelineStep
from claimdocs.processor.steps import (
    ExtractStep,
    InspectPdfStep,
    LoadDocumentStep,
    PersistExtractionStep,
)
from claimdocs.storage.base import BaseObjectStorage
from claimdocs.storage.factory import StorageFactory


class ExtractionProcessor:
    """Runs the extraction pipeline for one job.

    Pipeline: load -> extract -> inspect PDF -> persist.
    """

    def __init__(self, steps: list[PipelineStep]) -> None:
        self._steps = steps

    def process(self, job: JobRecord) -> PipelineContext:
        Log.info(f"Processing document {job.document_id} v{job.document_version} for job {job.id}")
        context = PipelineContext(
            job_id=job.id,
            document_id=job.document_id,
            document_version=job.document_version,
        )
        for step in self._steps:
            context = step.run(context)
        return context


def build_processor(
    settings: Settings,
    storage: BaseObjectStorage | None = None,
    connection_factory: ConnectionFactory = transaction,
) -> ExtractionProcessor:
    """Build an ExtractionProcessor with all required adapters."""
    doc_repo = DocumentRepository()
    return ExtractionProcessor(
        steps=[
            LoadDocumentStep(
                doc_repo,
                storage if storage is not None else StorageFactory.create(settings),
                connection_factory,
            ),
            ExtractStep(build_ocr_engine(settings)),
            InspectPdfStep(PdfInspectorFactory.create(settings)),
            PersistExtractionStep(doc_repo, MetadataRepository(), connection_factory),
        ]
    )
