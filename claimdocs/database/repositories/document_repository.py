from dataclasses import replace
from typing import Any

import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from claimdocs.documents.exceptions import (
    DocumentNotFoundError,
    StaleDocumentError,
    StorageError,
)
from claimdocs.documents.models import (
    Document,
    DocumentSearchQuery,
    DocumentStatistics,
    DocumentTypeStatistics,
)
from claimdocs.documents.serialization import (
    ocr_data_from_payload,
    ocr_data_to_payload,
    validation_results_from_payload,
    validation_results_to_payload,
)

_DOCUMENT_COLUMNS = """
    document_id, application_id, file_name, original_name, mime_type,
    file_size, location, document_type, validation_status, validation_results,
    ocr_data, confidence_score, uploaded_by, uploaded_at, updated_at,
    version, revision
"""


class DocumentRepository:
    """Database operations for the documents table.

    Every method runs on the caller's connection so several repositories can
    share one transaction. Updates are guarded by the row's revision counter.
    """

    def create(self, conn: psycopg.Connection[Any], document: Document) -> Document:
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                f"""
                INSERT INTO documents (
                    document_id, application_id, file_name, original_name, mime_type,
                    file_size, location, document_type, validation_status,
                    validation_results, ocr_data, confidence_score, uploaded_by,
                    version, revision
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, 0)
                RETURNING {_DOCUMENT_COLUMNS}
                """,
                (
                    document.document_id,
                    document.application_id,
                    document.file_name,
                    document.original_name,
                    document.mime_type,
                    document.file_size,
                    document.location,
                    document.document_type,
                    document.validation_status,
                    _results_param(document),
                    _ocr_param(document),
                    document.confidence_score,
                    document.uploaded_by,
                    document.version,
                ),
            )
            row = cur.fetchone()
        if row is None:
            raise StorageError(f"Insert of document {document.document_id} returned no row")
        return _row_to_document(row)

    def find_by_id(
        self,
        conn: psycopg.Connection[Any],
        document_id: str,
        *,
        for_update: bool = False,
    ) -> Document:
        """Find a document by ID.

        Raises:
            DocumentNotFoundError: if no document with this ID exists.
        """
        lock = " FOR UPDATE" if for_update else ""
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                f"SELECT {_DOCUMENT_COLUMNS} FROM documents WHERE document_id = %s{lock}",
                (document_id,),
            )
            row = cur.fetchone()

        if row is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        return _row_to_document(row)

    def find_by_application(self, conn: psycopg.Connection[Any], application_id: str) -> list[Document]:
        """Documents of one application, newest first."""
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                f"""
                SELECT {_DOCUMENT_COLUMNS} FROM documents
                WHERE application_id = %s
                ORDER BY uploaded_at DESC
                """,
                (application_id,),
            )
            rows = cur.fetchall()
        return [_row_to_document(row) for row in rows]

    def search(
        self,
        conn: psycopg.Connection[Any],
        query: DocumentSearchQuery,
    ) -> tuple[list[Document], int]:
        """Filtered, paginated search, newest first. Returns (page, total)."""
        where, params = _search_filters(query)
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(f"SELECT COUNT(*) AS total FROM documents{where}", params)
            count_row = cur.fetchone()
            cur.execute(
                f"""
                SELECT {_DOCUMENT_COLUMNS} FROM documents{where}
                ORDER BY uploaded_at DESC
                LIMIT %s OFFSET %s
                """,
                [*params, query.limit, query.offset],
            )
            rows = cur.fetchall()
        total = int(count_row["total"]) if count_row else 0
        return [_row_to_document(row) for row in rows], total

    def update(
        self,
        conn: psycopg.Connection[Any],
        document: Document,
        expected_revision: int,
    ) -> Document:
        """Overwrite the mutable columns when the row is still at expected_revision.

        Raises:
            DocumentNotFoundError: if the document does not exist.
            StaleDocumentError: if another writer updated the row first.
        """
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                """
                UPDATE documents
                SET file_name = %s,
                    original_name = %s,
                    mime_type = %s,
                    file_size = %s,
                    location = %s,
                    validation_status = %s,
                    validation_results = %s,
                    ocr_data = %s,
                    confidence_score = %s,
                    version = %s,
                    revision = revision + 1,
                    updated_at = NOW()
                WHERE document_id = %s AND revision = %s
                RETURNING revision, updated_at
                """,
                (
                    document.file_name,
                    document.original_name,
                    document.mime_type,
                    document.file_size,
                    document.location,
                    document.validation_status,
                    _results_param(document),
                    _ocr_param(document),
                    document.confidence_score,
                    document.version,
                    document.document_id,
                    expected_revision,
                ),
            )
            row = cur.fetchone()

            if row is None:
                cur.execute(
                    "SELECT revision FROM documents WHERE document_id = %s",
                    (document.document_id,),
                )
                current = cur.fetchone()
                if current is None:
                    raise DocumentNotFoundError(f"Document {document.document_id} not found")
                raise StaleDocumentError(
                    f"Document {document.document_id} changed concurrently "
                    f"(expected revision {expected_revision}, found {current['revision']})"
                )

        return replace(document, revision=row["revision"], updated_at=row["updated_at"])

    def delete(self, conn: psycopg.Connection[Any], document_id: str) -> None:
        """Delete a document. Versions, metadata and jobs cascade.

        Raises:
            DocumentNotFoundError: if no document with this ID exists.
        """
        with conn.cursor() as cur:
            cur.execute("DELETE FROM documents WHERE document_id = %s", (document_id,))
            if cur.rowcount == 0:
                raise DocumentNotFoundError(f"Document {document_id} not found")

    def statistics(
        self,
        conn: psycopg.Connection[Any],
        application_id: str | None = None,
    ) -> DocumentStatistics:
        where = " WHERE application_id = %s" if application_id else ""
        params: list[Any] = [application_id] if application_id else []
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                f"""
                SELECT
                    COUNT(*) AS total_documents,
                    COUNT(*) FILTER (WHERE validation_status = 'validated') AS validated_documents,
                    COUNT(*) FILTER (WHERE validation_status = 'failed') AS failed_documents,
                    COUNT(*) FILTER (WHERE validation_status = 'pending') AS pending_documents,
                    COUNT(*) FILTER (WHERE validation_status = 'processing') AS processing_documents,
                    AVG(confidence_score) AS average_confidence,
                    COALESCE(SUM(file_size), 0) AS total_file_size,
                    COUNT(DISTINCT document_type) AS unique_document_types
                FROM documents{where}
                """,
                params,
            )
            totals = cur.fetchone()
            cur.execute(
                f"""
                SELECT document_type, COUNT(*) AS count, AVG(confidence_score) AS average_confidence
                FROM documents{where}
                GROUP BY document_type
                ORDER BY count DESC, document_type
                """,
                params,
            )
            breakdown = cur.fetchall()

        if totals is None:
            raise StorageError("Document statistics query returned no row")
        return DocumentStatistics(
            total_documents=int(totals["total_documents"]),
            validated_documents=int(totals["validated_documents"]),
            failed_documents=int(totals["failed_documents"]),
            pending_documents=int(totals["pending_documents"]),
            processing_documents=int(totals["processing_documents"]),
            average_confidence=_to_float(totals["average_confidence"]) or 0.0,
            total_file_size=int(totals["total_file_size"]),
            unique_document_types=int(totals["unique_document_types"]),
            document_type_breakdown=[
                DocumentTypeStatistics(
                    document_type=row["document_type"],
                    count=int(row["count"]),
                    average_confidence=_to_float(row["average_confidence"]) or 0.0,
                )
                for row in breakdown
            ],
        )


def _search_filters(query: DocumentSearchQuery) -> tuple[str, list[Any]]:
    clauses: list[str] = []
    params: list[Any] = []
    for column, value in (
        ("application_id", query.application_id),
        ("document_type", query.document_type),
        ("validation_status", query.validation_status),
        ("uploaded_by", query.uploaded_by),
    ):
        if value:
            clauses.append(f"{column} = %s")
            params.append(value)
    if query.date_from is not None:
        clauses.append("uploaded_at >= %s")
        params.append(query.date_from)
    if query.date_to is not None:
        clauses.append("uploaded_at <= %s")
        params.append(query.date_to)
    if not clauses:
        return "", params
    return " WHERE " + " AND ".join(clauses), params


def _results_param(document: Document) -> Jsonb | None:
    if document.validation_results is None:
        return None
    return Jsonb(validation_results_to_payload(document.validation_results))


def _ocr_param(document: Document) -> Jsonb | None:
    if document.ocr_data is None:
        return None
    return Jsonb(ocr_data_to_payload(document.ocr_data))


def _to_float(value: Any) -> float | None:
    return float(value) if value is not None else None


def _row_to_document(row: dict[str, Any]) -> Document:
    results = row["validation_results"]
    ocr_data = row["ocr_data"]
    return Document(
        document_id=row["document_id"],
        application_id=row["application_id"],
        file_name=row["file_name"],
        original_name=row["original_name"],
        mime_type=row["mime_type"],
        file_size=int(row["file_size"]),
        location=row["location"],
        document_type=row["document_type"],
        uploaded_by=row["uploaded_by"],
        validation_status=row["validation_status"],
        validation_results=validation_results_from_payload(results) if results else None,
        ocr_data=ocr_data_from_payload(ocr_data) if ocr_data else None,
        confidence_score=_to_float(row["confidence_score"]),
        version=row["version"],
        revision=row["revision"],
        uploaded_at=row["uploaded_at"],
        updated_at=row["updated_at"],
    )
