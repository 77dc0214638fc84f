from dataclasses import replace

from claimdocs.config.settings import Settings
from claimdocs.database.connection import ConnectionFactory, transaction
from claimdocs.database.models import JobRecord
from claimdocs.database.repositories.document_repository import DocumentRepository
from claimdocs.database.repositories.job_repository import JobRepository
from claimdocs.documents.exceptions import DocumentServiceError, JobSupersededError
from claimdocs.documents.models import STATUS_FAILED, ValidationIssue, ValidationResults
from claimdocs.logging.logger import Log
from claimdocs.processor.processor import ExtractionProcessor


class JobRunner:
    """Run one job, catch exceptions, and apply retry logic."""

    def __init__(
        self,
        processor: ExtractionProcessor,
        job_repo: JobRepository,
        settings: Settings,
        doc_repo: DocumentRepository | None = None,
        connection_factory: ConnectionFactory = transaction,
    ) -> None:
        self._processor = processor
        self._job_repo = job_repo
        self._settings = settings
        self._doc_repo = doc_repo if doc_repo is not None else DocumentRepository()
        self._connection_factory = connection_factory

    def run(self, job: JobRecord) -> None:
        """Execute a single job with error handling."""
        Log.info(
            "Running extraction job",
            job_id=job.id,
            document_id=job.document_id,
            version=job.document_version,
            attempt=job.attempts + 1,
        )
        try:
            self._processor.process(job)
            self._job_repo.mark_done(job.id)
            Log.info("Extraction job done", job_id=job.id)
        except JobSupersededError as exc:
            self._job_repo.mark_done(job.id)
            Log.warning(f"Extraction job superseded: {exc}", job_id=job.id)
        except Exception as exc:
            self._handle_failure(job, exc)

    def _handle_failure(self, job: JobRecord, exc: Exception) -> None:
        """Increment attempts; mark failed if at max, otherwise back to pending."""
        Log.error(f"Extraction job failed: {exc}", job_id=job.id, attempt=job.attempts + 1)
        if job.attempts + 1 >= self._settings.max_job_attempts:
            self._job_repo.mark_failed(job.id, str(exc))
            Log.error(f"Job {job.id} permanently failed after {job.attempts + 1} attempts")
            self._record_failure(job, exc)
        else:
            self._job_repo.increment_attempts(job.id, str(exc))
            Log.warning(f"Job {job.id} will be retried (attempt {job.attempts + 1})")

    def _record_failure(self, job: JobRecord, exc: Exception) -> None:
        """Leave the document failed with an error entry explaining the cause."""
        try:
            with self._connection_factory() as conn:
                document = self._doc_repo.find_by_id(conn, job.document_id, for_update=True)
                if document.version != job.document_version:
                    Log.warning(
                        f"Document {job.document_id} moved to version {document.version}, "
                        f"failure of job {job.id} not recorded"
                    )
                    return
                failed = replace(
                    document,
                    validation_status=STATUS_FAILED,
                    validation_results=ValidationResults(
                        is_valid=False,
                        errors=[
                            ValidationIssue(
                                field="ocr",
                                message=f"OCR processing error: {exc}",
                                code="OCR_PROCESSING_ERROR",
                            )
                        ],
                    ),
                )
                self._doc_repo.update(conn, failed, expected_revision=document.revision)
        except DocumentServiceError as record_exc:
            Log.error(f"Could not record failure of job {job.id} on document {job.document_id}: {record_exc}")
