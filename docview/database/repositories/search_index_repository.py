from psycopg.types.json import Jsonb

from docview.database.connection import get_connection
from docview.search.base import BaseSearchIndex
from docview.search.models import IndexDocument


class SearchIndexRepository(BaseSearchIndex):
    """Database operations for the document_search_index table."""

    def upsert(self, document: IndexDocument) -> None:
        with get_connection() as conn:
            conn.execute(
                """
                INSERT INTO document_search_index
                (document_id, filename, is_processed, is_trashed, metadata,
                 created_at, updated_at, indexed_at)
                VALUES (%s, %s, %s, %s, %s, %s, %s, NOW())
                ON CONFLICT (document_id) DO UPDATE
                SET filename = EXCLUDED.filename,
                    is_processed = EXCLUDED.is_processed,
                    is_trashed = EXCLUDED.is_trashed,
                    metadata = EXCLUDED.metadata,
                    created_at = EXCLUDED.created_at,
                    updated_at = EXCLUDED.updated_at,
                    indexed_at = NOW()
                """,
                (
                    document.document_id,
                    document.filename,
                    document.is_processed,
                    document.is_trashed,
                    Jsonb(document.metadata),
                    document.created_at,
                    document.updated_at,
                ),
            )
            conn.commit()

    def delete(self, document_id: int) -> None:
        with get_connection() as conn:
            conn.execute(
                "DELETE FROM document_search_index WHERE document_id = %s",
                (document_id,),
            )
            conn.commit()
