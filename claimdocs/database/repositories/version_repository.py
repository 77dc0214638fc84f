import uuid
from typing import Any

import psycopg
from psycopg.errors import UniqueViolation
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from claimdocs.documents.exceptions import ConflictError, StorageError, VersionNotFoundError
from claimdocs.documents.models import DocumentVersion
from claimdocs.documents.serialization import (
    ocr_data_from_payload,
    ocr_data_to_payload,
    validation_results_from_payload,
    validation_results_to_payload,
)

_VERSION_COLUMNS = """
    version_id, document_id, version_number, location, file_name,
    original_name, mime_type, file_size, validation_status,
    validation_results, ocr_data, confidence_score, created_at, created_by
"""


class VersionRepository:
    """Database operations for the append-only document_versions table."""

    def create(self, conn: psycopg.Connection[Any], version: DocumentVersion) -> DocumentVersion:
        """Insert a snapshot.

        Raises:
            ConflictError: if (document_id, version_number) already exists.
        """
        version_id = version.version_id or str(uuid.uuid4())
        try:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    INSERT INTO document_versions (
                        version_id, document_id, version_number, location, file_name,
                        original_name, mime_type, file_size, validation_status,
                        validation_results, ocr_data, confidence_score, created_by
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                    RETURNING {_VERSION_COLUMNS}
                    """,
                    (
                        version_id,
                        version.document_id,
                        version.version_number,
                        version.location,
                        version.file_name,
                        version.original_name,
                        version.mime_type,
                        version.file_size,
                        version.validation_status,
                        (
                            Jsonb(validation_results_to_payload(version.validation_results))
                            if version.validation_results is not None
                            else None
                        ),
                        Jsonb(ocr_data_to_payload(version.ocr_data)) if version.ocr_data is not None else None,
                        version.confidence_score,
                        version.created_by,
                    ),
                )
                row = cur.fetchone()
        except UniqueViolation as exc:
            raise ConflictError(
                f"Version {version.version_number} of document {version.document_id} already exists"
            ) from exc

        if row is None:
            raise StorageError(
                f"Insert of version {version.version_number} of document {version.document_id} returned no row"
            )
        return _row_to_version(row)

    def list_for_document(self, conn: psycopg.Connection[Any], document_id: str) -> list[DocumentVersion]:
        """Snapshots of a document, highest version number first."""
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                f"""
                SELECT {_VERSION_COLUMNS} FROM document_versions
                WHERE document_id = %s
                ORDER BY version_number DESC
                """,
                (document_id,),
            )
            rows = cur.fetchall()
        return [_row_to_version(row) for row in rows]

    def get(self, conn: psycopg.Connection[Any], document_id: str, version_number: int) -> DocumentVersion:
        """Find one snapshot.

        Raises:
            VersionNotFoundError: if the snapshot does not exist.
        """
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                f"""
                SELECT {_VERSION_COLUMNS} FROM document_versions
                WHERE document_id = %s AND version_number = %s
                """,
                (document_id, version_number),
            )
            row = cur.fetchone()

        if row is None:
            raise VersionNotFoundError(
                f"Version {version_number} of document {document_id} not found"
            )
        return _row_to_version(row)


def _row_to_version(row: dict[str, Any]) -> DocumentVersion:
    results = row["validation_results"]
    ocr_data = row["ocr_data"]
    confidence = row["confidence_score"]
    return DocumentVersion(
        version_id=row["version_id"],
        document_id=row["document_id"],
        version_number=row["version_number"],
        location=row["location"],
        file_name=row["file_name"],
        original_name=row["original_name"],
        mime_type=row["mime_type"],
        file_size=int(row["file_size"]),
        validation_status=row["validation_status"],
        validation_results=validation_results_from_payload(results) if results else None,
        ocr_data=ocr_data_from_payload(ocr_data) if ocr_data else None,
        confidence_score=float(confidence) if confidence is not None else None,
        created_at=row["created_at"],
        created_by=row["created_by"],
    )
