from typing import Any

import psycopg
from psycopg.rows import dict_row

from claimdocs.database.connection import get_connection
from claimdocs.database.models import JobRecord
from claimdocs.documents.exceptions import StorageError

_JOB_COLUMNS = """
    id, document_id, document_version, status, attempts,
    error_message, locked_at, created_at, updated_at
"""


class JobRepository:
    """Database operations for the extraction_jobs table."""

    def __init__(self, max_attempts: int) -> None:
        self._max_attempts = max_attempts

    def enqueue(self, conn: psycopg.Connection[Any], document_id: str, document_version: int) -> int:
        """Insert a pending job for one document version. Caller commits."""
        with conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO extraction_jobs (document_id, document_version, status, attempts)
                VALUES (%s, %s, 'pending', 0)
                RETURNING id
                """,
                (document_id, document_version),
            )
            row = cur.fetchone()
        if row is None:
            raise StorageError(f"Enqueue of document {document_id} returned no job id")
        return int(row[0])

    def claim_next_job(self, conn: psycopg.Connection[Any]) -> JobRecord | None:
        """Claim the next pending job using SELECT FOR UPDATE SKIP LOCKED."""
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                """
                SELECT id, document_id, document_version, status, attempts
                FROM extraction_jobs
                WHERE status = 'pending'
                  AND attempts < %s
                ORDER BY created_at
                LIMIT 1
                FOR UPDATE SKIP LOCKED
                """,
                (self._max_attempts,),
            )
            row = cur.fetchone()

        if row is None:
            return None

        conn.execute(
            """
            UPDATE extraction_jobs
            SET status = 'processing', locked_at = NOW(), updated_at = NOW()
            WHERE id = %s
            """,
            (row["id"],),
        )
        conn.commit()

        return JobRecord(
            id=row["id"],
            document_id=row["document_id"],
            document_version=row["document_version"],
            status="processing",
            attempts=row["attempts"],
        )

    def mark_done(self, job_id: int) -> None:
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE extraction_jobs
                SET status = 'done', error_message = NULL, updated_at = NOW()
                WHERE id = %s
                """,
                (job_id,),
            )
            conn.commit()

    def mark_failed(self, job_id: int, error: str) -> None:
        """Mark a job as permanently failed."""
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE extraction_jobs
                SET status = 'failed', attempts = attempts + 1,
                    error_message = %s, updated_at = NOW()
                WHERE id = %s
                """,
                (error, job_id),
            )
            conn.commit()

    def increment_attempts(self, job_id: int, error: str | None = None) -> None:
        """Increment attempt count and return job to pending."""
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE extraction_jobs
                SET attempts = attempts + 1, status = 'pending', error_message = %s,
                    locked_at = NULL, updated_at = NOW()
                WHERE id = %s
                """,
                (error, job_id),
            )
            conn.commit()

    def find_by_id(self, job_id: int) -> JobRecord | None:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_JOB_COLUMNS} FROM extraction_jobs WHERE id = %s",
                    (job_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None
        return JobRecord(**row)

    def find_by_document(self, document_id: str) -> list[JobRecord]:
        """All jobs of a document, oldest first."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_JOB_COLUMNS} FROM extraction_jobs
                    WHERE document_id = %s
                    ORDER BY created_at, id
                    """,
                    (document_id,),
                )
                rows = cur.fetchall()
        return [JobRecord(**row) for row in rows]
