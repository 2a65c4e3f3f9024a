from datetime import datetime
from typing import Any

from psycopg.rows import dict_row

from docview.database.connection import get_connection
from docview.lifecycle.base import BaseDocumentStore
from docview.lifecycle.exceptions import DocumentNotFoundError
from docview.lifecycle.models import Document, DocumentMetadata
from docview.lifecycle.validator import METADATA_FIELDS

_METADATA_COLUMNS = ", ".join(METADATA_FIELDS)
_SELECT_COLUMNS = (
    f"id, filename, {_METADATA_COLUMNS}, is_processed, is_trashed, "
    "trashed_at, archived_at, created_at, updated_at"
)


class DocumentRepository(BaseDocumentStore):
    """Database operations for the documents table."""

    def load_document(self, document_id: int) -> Document:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_SELECT_COLUMNS}
                    FROM documents
                    WHERE id = %s AND archived_at IS NULL
                    """,
                    (document_id,),
                )
                row = cur.fetchone()

        if row is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        return _to_document(row)

    def insert_document(self, document: Document) -> Document:
        metadata = document.metadata.as_dict()
        placeholders = ", ".join(["%s"] * len(METADATA_FIELDS))
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    INSERT INTO documents
                    (filename, {_METADATA_COLUMNS}, is_processed, is_trashed,
                     created_at, updated_at)
                    VALUES (%s, {placeholders}, %s, %s,
                            COALESCE(%s, NOW()), COALESCE(%s, NOW()))
                    RETURNING {_SELECT_COLUMNS}
                    """,
                    (
                        document.filename,
                        *(metadata[name] for name in METADATA_FIELDS),
                        document.is_processed,
                        document.is_trashed,
                        document.created_at,
                        document.updated_at,
                    ),
                )
                row = cur.fetchone()
            conn.commit()

        assert row is not None
        return _to_document(row)

    def save_document(self, document: Document) -> None:
        metadata = document.metadata.as_dict()
        assignments = ", ".join(f"{name} = %s" for name in METADATA_FIELDS)
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    UPDATE documents
                    SET {assignments},
                        is_processed = %s,
                        is_trashed = %s,
                        trashed_at = %s,
                        updated_at = COALESCE(%s, NOW())
                    WHERE id = %s AND archived_at IS NULL
                    """,
                    (
                        *(metadata[name] for name in METADATA_FIELDS),
                        document.is_processed,
                        document.is_trashed,
                        document.trashed_at,
                        document.updated_at,
                        document.id,
                    ),
                )
                if cur.rowcount == 0:
                    raise DocumentNotFoundError(f"Document {document.id} not found")
            conn.commit()

    def find_archivable(self, cutoff: datetime, limit: int) -> list[int]:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT id
                    FROM documents
                    WHERE is_processed
                      AND NOT is_trashed
                      AND archived_at IS NULL
                      AND updated_at < %s
                    ORDER BY id
                    LIMIT %s
                    """,
                    (cutoff, limit),
                )
                return [row[0] for row in cur.fetchall()]

    def mark_archived(self, document_ids: list[int], archived_at: datetime) -> int:
        if not document_ids:
            return 0
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE documents
                    SET archived_at = %s
                    WHERE id = ANY(%s) AND archived_at IS NULL
                    """,
                    (archived_at, document_ids),
                )
                archived = cur.rowcount
            conn.commit()
        return archived

    def find_expired_trash(self, cutoff: datetime, limit: int) -> list[int]:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT id
                    FROM documents
                    WHERE is_trashed
                      AND archived_at IS NULL
                      AND trashed_at < %s
                    ORDER BY id
                    LIMIT %s
                    """,
                    (cutoff, limit),
                )
                return [row[0] for row in cur.fetchall()]

    def delete_document(self, document_id: int) -> None:
        """Delete a trashed document; its history goes with it (ON DELETE CASCADE)."""
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "DELETE FROM documents WHERE id = %s AND is_trashed",
                    (document_id,),
                )
                if cur.rowcount == 0:
                    raise DocumentNotFoundError(
                        f"Document {document_id} not found in trash"
                    )
            conn.commit()


def _to_document(row: dict[str, Any]) -> Document:
    return Document(
        id=row["id"],
        filename=row["filename"],
        metadata=DocumentMetadata(**{name: row[name] for name in METADATA_FIELDS}),
        is_processed=row["is_processed"],
        is_trashed=row["is_trashed"],
        trashed_at=row["trashed_at"],
        archived_at=row["archived_at"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
