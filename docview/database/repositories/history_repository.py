from collections.abc import Iterator
from typing import Any

from psycopg.rows import dict_row

from docview.database.connection import get_connection
from docview.history.base import BaseAuditLog, RestartableQuery
from docview.history.models import EntryDraft, HistoryEntry, UserRef

# First key of the two-key advisory lock; the document id is the second.
_HISTORY_LOCK_NAMESPACE = 7301


class HistoryRepository(BaseAuditLog):
    """Database operations for the document_history table."""

    def __init__(self, fetch_size: int = 200) -> None:
        self._fetch_size = fetch_size

    def append(self, draft: EntryDraft) -> HistoryEntry:
        """Insert an entry under a per-document advisory lock.

        The lock is held until commit, so concurrent appends for the same
        document read and assign sequences one at a time.
        """
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    "SELECT pg_advisory_xact_lock(%s, %s)",
                    (_HISTORY_LOCK_NAMESPACE, draft.document_id),
                )
                cur.execute(
                    """
                    WITH inserted AS (
                        INSERT INTO document_history
                        (document_id, sequence, action_type, description, user_id, created_at)
                        SELECT %s, COALESCE(MAX(sequence), 0) + 1, %s, %s, %s, %s
                        FROM document_history
                        WHERE document_id = %s
                        RETURNING id, document_id, sequence, action_type,
                                  description, user_id, created_at
                    )
                    SELECT i.*, u.username
                    FROM inserted i
                    LEFT JOIN users u ON u.id = i.user_id
                    """,
                    (
                        draft.document_id,
                        str(draft.action_type),
                        draft.description,
                        draft.user_id,
                        draft.timestamp,
                        draft.document_id,
                    ),
                )
                row = cur.fetchone()
            conn.commit()

        assert row is not None
        return _to_entry(row)

    def query(self, document_id: int) -> RestartableQuery:
        return RestartableQuery(lambda: self._stream(document_id))

    def purge(self, document_id: int) -> int:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "DELETE FROM document_history WHERE document_id = %s",
                    (document_id,),
                )
                removed = cur.rowcount
            conn.commit()
        return removed

    def _stream(self, document_id: int) -> Iterator[HistoryEntry]:
        with get_connection() as conn:
            with conn.cursor(
                name=f"history_{document_id}", row_factory=dict_row
            ) as cur:
                cur.itersize = self._fetch_size
                cur.execute(
                    """
                    SELECT h.id, h.document_id, h.sequence, h.action_type,
                           h.description, h.user_id, h.created_at, u.username
                    FROM document_history h
                    LEFT JOIN users u ON u.id = h.user_id
                    WHERE h.document_id = %s
                    ORDER BY h.sequence
                    """,
                    (document_id,),
                )
                for row in cur:
                    yield _to_entry(row)
            conn.rollback()


def _to_entry(row: dict[str, Any]) -> HistoryEntry:
    user = None
    if row["user_id"] is not None and row["username"] is not None:
        user = UserRef(id=row["user_id"], username=row["username"])
    return HistoryEntry(
        id=row["id"],
        document_id=row["document_id"],
        sequence=row["sequence"],
        action_type=row["action_type"],
        timestamp=row["created_at"],
        user=user,
        description=row["description"],
    )
