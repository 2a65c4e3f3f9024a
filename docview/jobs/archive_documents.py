from collections.abc import Callable
from datetime import datetime, timedelta

from docview.config.settings import Settings
from docview.history.base import BaseAuditLog
from docview.history.models import ActionType, EntryDraft
from docview.lifecycle.base import BaseDocumentStore
from docview.lifecycle.exceptions import DocviewError
from docview.lifecycle.service import utcnow
from docview.logging.logger import Log
from docview.search.base import BaseIndexQueue

ARCHIVE_DESCRIPTION = "Document archived due to retention policy"


class ArchiveDocumentsJob:
    """Daily sweep: archive processed documents untouched for the retention period.

    Works in chunks; each chunk is archived atomically and every archived
    document gets an ARCHIVE history entry attributed to the system user. A
    failing chunk stops the run and its documents stay eligible for the next
    run.
    """

    name = "archive_documents"

    def __init__(
        self,
        store: BaseDocumentStore,
        audit_log: BaseAuditLog,
        index_queue: BaseIndexQueue,
        settings: Settings,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._audit_log = audit_log
        self._index_queue = index_queue
        self._settings = settings
        self._clock = clock

    def cutoff(self) -> datetime:
        return self._clock() - timedelta(days=self._settings.archive_period_days)

    def run(self) -> int:
        """Archive eligible documents. Returns the number archived."""
        cutoff = self.cutoff()
        chunk_size = self._settings.archive_chunk_size
        Log.info(f"Starting document archival (cutoff {cutoff.isoformat()})")
        total = 0
        while True:
            try:
                ids = self._store.find_archivable(cutoff, chunk_size)
                if not ids:
                    break
                archived_at = self._clock()
                archived = self._store.mark_archived(ids, archived_at)
                total += archived
                for document_id in ids:
                    self._record_archive(document_id, archived_at)
            except DocviewError:
                Log.exception(f"Document archival stopped after {total} documents")
                return total
            Log.info(f"Archived chunk of {archived} documents. Total archived: {total}")
            if len(ids) < chunk_size or archived == 0:
                break
        Log.info(f"Document archival complete. Total documents archived: {total}")
        return total

    def _record_archive(self, document_id: int, archived_at: datetime) -> None:
        self._audit_log.append(
            EntryDraft(
                document_id=document_id,
                action_type=ActionType.ARCHIVE,
                user_id=self._settings.system_user_id,
                timestamp=archived_at,
                description=ARCHIVE_DESCRIPTION,
            )
        )
        self._index_queue.enqueue(document_id, "delete")
