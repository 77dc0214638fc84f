from collections.abc import Callable
from contextlib import AbstractContextManager
from unittest.mock import MagicMock

from claimdocs.database.models import JobRecord
from claimdocs.documents.exceptions import JobSupersededError, StaleDocumentError
from claimdocs.documents.models import Document
from claimdocs.worker.job_runner import JobRunner

ConnFactory = Callable[[], AbstractContextManager[MagicMock]]


def _make_runner(
    connection_factory: ConnFactory,
    max_attempts: int = 3,
) -> tuple[JobRunner, MagicMock, MagicMock, MagicMock]:
    """Create a JobRunner with mocked dependencies."""
    mock_processor = MagicMock()
    mock_repo = MagicMock()
    mock_doc_repo = MagicMock()
    settings = MagicMock(max_job_attempts=max_attempts)
    runner = JobRunner(mock_processor, mock_repo, settings, mock_doc_repo, connection_factory)
    return runner, mock_processor, mock_repo, mock_doc_repo


def _make_job(attempts: int = 0, document_version: int = 1) -> JobRecord:
    return JobRecord(
        id=1,
        document_id="doc-1",
        document_version=document_version,
        status="processing",
        attempts=attempts,
    )


def _make_document(version: int = 1) -> Document:
    return Document(
        document_id="doc-1",
        application_id="app-1",
        file_name="doc-1_v1_slip.pdf",
        original_name="slip.pdf",
        mime_type="application/pdf",
        file_size=10,
        location="file://documents/doc-1/v1.pdf",
        document_type="salary_slip",
        uploaded_by="user-1",
        version=version,
        revision=2,
    )


class TestSuccessfulProcessing:
    def test_calls_processor(self, connection_factory: ConnFactory) -> None:
        runner, mock_processor, _repo, _docs = _make_runner(connection_factory)
        job = _make_job()

        runner.run(job)

        mock_processor.process.assert_called_once_with(job)

    def test_marks_job_done(self, connection_factory: ConnFactory) -> None:
        runner, _processor, mock_repo, _docs = _make_runner(connection_factory)

        runner.run(_make_job())

        mock_repo.mark_done.assert_called_once_with(1)


class TestSupersededJob:
    def test_marks_done_without_retry(self, connection_factory: ConnFactory) -> None:
        runner, mock_processor, mock_repo, mock_doc_repo = _make_runner(connection_factory)
        mock_processor.process.side_effect = JobSupersededError("newer version")

        runner.run(_make_job())

        mock_repo.mark_done.assert_called_once_with(1)
        mock_repo.increment_attempts.assert_not_called()
        mock_doc_repo.update.assert_not_called()


class TestFailureBelowMax:
    def test_increments_attempts(self, connection_factory: ConnFactory) -> None:
        runner, mock_processor, mock_repo, _docs = _make_runner(connection_factory, max_attempts=3)
        mock_processor.process.side_effect = Exception("boom")

        runner.run(_make_job(attempts=0))

        mock_repo.increment_attempts.assert_called_once_with(1, "boom")
        mock_repo.mark_failed.assert_not_called()

    def test_does_not_touch_document(self, connection_factory: ConnFactory) -> None:
        runner, mock_processor, mock_repo, mock_doc_repo = _make_runner(connection_factory, max_attempts=3)
        mock_processor.process.side_effect = Exception("boom")

        runner.run(_make_job(attempts=1))

        mock_repo.mark_done.assert_not_called()
        mock_doc_repo.update.assert_not_called()


class TestFailureAtMax:
    def test_marks_failed(self, connection_factory: ConnFactory) -> None:
        runner, mock_processor, mock_repo, mock_doc_repo = _make_runner(connection_factory, max_attempts=3)
        mock_processor.process.side_effect = Exception("boom")
        mock_doc_repo.find_by_id.return_value = _make_document()

        runner.run(_make_job(attempts=2))

        mock_repo.mark_failed.assert_called_once_with(1, "boom")
        mock_repo.increment_attempts.assert_not_called()

    def test_records_failure_on_document(self, connection_factory: ConnFactory, mock_conn: MagicMock) -> None:
        runner, mock_processor, _repo, mock_doc_repo = _make_runner(connection_factory, max_attempts=3)
        mock_processor.process.side_effect = Exception("textract unavailable")
        mock_doc_repo.find_by_id.return_value = _make_document()

        runner.run(_make_job(attempts=5))

        mock_doc_repo.find_by_id.assert_called_once_with(mock_conn, "doc-1", for_update=True)
        failed = mock_doc_repo.update.call_args.args[1]
        assert failed.validation_status == "failed"
        assert failed.validation_results.errors[0].code == "OCR_PROCESSING_ERROR"
        assert "textract unavailable" in failed.validation_results.errors[0].message
        assert mock_doc_repo.update.call_args.kwargs["expected_revision"] == 2

    def test_newer_version_is_left_alone(self, connection_factory: ConnFactory) -> None:
        runner, mock_processor, _repo, mock_doc_repo = _make_runner(connection_factory, max_attempts=1)
        mock_processor.process.side_effect = Exception("boom")
        mock_doc_repo.find_by_id.return_value = _make_document(version=2)

        runner.run(_make_job(document_version=1))

        mock_doc_repo.update.assert_not_called()

    def test_recording_error_is_logged_not_raised(self, connection_factory: ConnFactory) -> None:
        runner, mock_processor, mock_repo, mock_doc_repo = _make_runner(connection_factory, max_attempts=1)
        mock_processor.process.side_effect = Exception("boom")
        mock_doc_repo.find_by_id.return_value = _make_document()
        mock_doc_repo.update.side_effect = StaleDocumentError("changed")

        runner.run(_make_job())

        mock_repo.mark_failed.assert_called_once_with(1, "boom")
