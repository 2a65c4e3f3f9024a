from psycopg.rows import dict_row

from docview.database.connection import get_connection
from docview.database.models import IndexJobRecord
from docview.search.base import BaseIndexQueue
from docview.search.models import INDEX_OPERATIONS


class IndexJobRepository(BaseIndexQueue):
    """Database operations for the document_index_jobs table."""

    def __init__(self, max_attempts: int) -> None:
        self._max_attempts = max_attempts

    def enqueue(self, document_id: int, operation: str) -> None:
        if operation not in INDEX_OPERATIONS:
            raise ValueError(f"Unknown index operation '{operation}'")
        with get_connection() as conn:
            conn.execute(
                """
                INSERT INTO document_index_jobs (document_id, operation, status, attempts)
                VALUES (%s, %s, 'pending', 0)
                """,
                (document_id, operation),
            )
            conn.commit()

    def claim_next_job(self) -> IndexJobRecord | None:
        """Claim the next pending job using SELECT FOR UPDATE SKIP LOCKED."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, document_id, operation, status, attempts
                    FROM document_index_jobs
                    WHERE status = 'pending'
                      AND attempts < %s
                    ORDER BY created_at, id
                    LIMIT 1
                    FOR UPDATE SKIP LOCKED
                    """,
                    (self._max_attempts,),
                )
                row = cur.fetchone()

            if row is None:
                conn.rollback()
                return None

            conn.execute(
                """
                UPDATE document_index_jobs
                SET status = 'processing', locked_at = NOW(), updated_at = NOW()
                WHERE id = %s
                """,
                (row["id"],),
            )
            conn.commit()

        return IndexJobRecord(
            id=row["id"],
            document_id=row["document_id"],
            operation=row["operation"],
            status="processing",
            attempts=row["attempts"],
        )

    def mark_done(self, job_id: int) -> None:
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE document_index_jobs
                SET status = 'done', updated_at = NOW()
                WHERE id = %s
                """,
                (job_id,),
            )
            conn.commit()

    def mark_failed(self, job_id: int, error: str) -> None:
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE document_index_jobs
                SET status = 'failed', error_message = %s, updated_at = NOW()
                WHERE id = %s
                """,
                (error, job_id),
            )
            conn.commit()

    def increment_attempts(self, job_id: int) -> None:
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE document_index_jobs
                SET attempts = attempts + 1, status = 'pending',
                    locked_at = NULL, updated_at = NOW()
                WHERE id = %s
                """,
                (job_id,),
            )
            conn.commit()

    def find_by_id(self, job_id: int) -> IndexJobRecord | None:
        """Find a job by ID. Useful for tests."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, document_id, operation, status, attempts,
                           error_message, locked_at, created_at, updated_at
                    FROM document_index_jobs
                    WHERE id = %s
                    """,
                    (job_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None
        return IndexJobRecord(**row)
