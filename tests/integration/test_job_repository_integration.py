from typing import Any

import psycopg
import pytest

from claimdocs.database.connection import get_connection
from claimdocs.database.repositories.job_repository import JobRepository
from claimdocs.documents.models import Document


def _job_row(job_id: int) -> tuple[Any, ...]:
    with get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute(
                "SELECT status, attempts, error_message, locked_at FROM extraction_jobs WHERE id = %s",
                (job_id,),
            )
            row = cur.fetchone()
    assert row is not None
    return row


@pytest.mark.integration
class TestJobRepositoryClaimNextJob:
    def test_claims_job_queued_by_upload(
        self, seed_document: Document, db_conn: psycopg.Connection[Any]
    ) -> None:
        repo = JobRepository(max_attempts=3)

        job = repo.claim_next_job(db_conn)

        assert job is not None
        assert job.document_id == seed_document.document_id
        assert job.document_version == 1
        assert job.status == "processing"
        status, _attempts, _error, locked_at = _job_row(job.id)
        assert status == "processing"
        assert locked_at is not None

    def test_returns_none_when_no_pending_jobs(self, db_conn: psycopg.Connection[Any]) -> None:
        repo = JobRepository(max_attempts=3)
        assert repo.claim_next_job(db_conn) is None

    def test_skips_job_with_attempts_at_max(
        self, seed_document: Document, db_conn: psycopg.Connection[Any]
    ) -> None:
        db_conn.execute(
            "UPDATE extraction_jobs SET attempts = 3 WHERE document_id = %s",
            (seed_document.document_id,),
        )
        db_conn.commit()

        assert JobRepository(max_attempts=3).claim_next_job(db_conn) is None


@pytest.mark.integration
class TestJobRepositoryTransitions:
    def _claim(self, db_conn: psycopg.Connection[Any]) -> int:
        job = JobRepository(max_attempts=3).claim_next_job(db_conn)
        assert job is not None
        return job.id

    def test_mark_done(self, seed_document: Document, db_conn: psycopg.Connection[Any]) -> None:
        job_id = self._claim(db_conn)

        JobRepository(max_attempts=3).mark_done(job_id)

        assert _job_row(job_id)[0] == "done"

    def test_mark_failed_records_error(self, seed_document: Document, db_conn: psycopg.Connection[Any]) -> None:
        job_id = self._claim(db_conn)

        JobRepository(max_attempts=3).mark_failed(job_id, "Textract unavailable")

        status, attempts, error, _locked = _job_row(job_id)
        assert status == "failed"
        assert attempts == 1
        assert error == "Textract unavailable"

    def test_increment_attempts_returns_job_to_pending(
        self, seed_document: Document, db_conn: psycopg.Connection[Any]
    ) -> None:
        job_id = self._claim(db_conn)

        JobRepository(max_attempts=3).increment_attempts(job_id, "timeout")

        status, attempts, error, locked_at = _job_row(job_id)
        assert status == "pending"
        assert attempts == 1
        assert error == "timeout"
        assert locked_at is None

    def test_find_by_document(self, seed_document: Document) -> None:
        jobs = JobRepository(max_attempts=3).find_by_document(seed_document.document_id)

        assert len(jobs) == 1
        assert jobs[0].document_version == 1
        assert JobRepository(max_attempts=3).find_by_id(jobs[0].id) == jobs[0]
