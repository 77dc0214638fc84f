import uuid
from typing import Any

import psycopg
from psycopg.rows import dict_row

from claimdocs.documents.models import Dimensions, DocumentMetadata


class MetadataRepository:
    """Database operations for the document_metadata table (one row per document)."""

    def get(self, conn: psycopg.Connection[Any], document_id: str) -> DocumentMetadata | None:
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                """
                SELECT page_count, dimensions_width, dimensions_height,
                       quality, is_readable, has_text
                FROM document_metadata
                WHERE document_id = %s
                """,
                (document_id,),
            )
            row = cur.fetchone()

        if row is None:
            return None

        dimensions = None
        if row["dimensions_width"] is not None and row["dimensions_height"] is not None:
            dimensions = Dimensions(width=row["dimensions_width"], height=row["dimensions_height"])
        return DocumentMetadata(
            is_readable=row["is_readable"],
            has_text=row["has_text"],
            quality=row["quality"],
            page_count=row["page_count"],
            dimensions=dimensions,
        )

    def upsert(self, conn: psycopg.Connection[Any], document_id: str, metadata: DocumentMetadata) -> None:
        """Insert or replace the metadata row of a document."""
        dimensions = metadata.dimensions
        conn.execute(
            """
            INSERT INTO document_metadata (
                metadata_id, document_id, page_count, dimensions_width,
                dimensions_height, quality, is_readable, has_text
            )
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            ON CONFLICT (document_id) DO UPDATE
            SET page_count = EXCLUDED.page_count,
                dimensions_width = EXCLUDED.dimensions_width,
                dimensions_height = EXCLUDED.dimensions_height,
                quality = EXCLUDED.quality,
                is_readable = EXCLUDED.is_readable,
                has_text = EXCLUDED.has_text
            """,
            (
                str(uuid.uuid4()),
                document_id,
                metadata.page_count,
                dimensions.width if dimensions else None,
                dimensions.height if dimensions else None,
                metadata.quality,
                metadata.is_readable,
                metadata.has_text,
            ),
        )
