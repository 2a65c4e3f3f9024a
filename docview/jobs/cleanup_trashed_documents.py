from collections.abc import Callable
from datetime import datetime, timedelta

from docview.config.settings import Settings
from docview.history.base import BaseAuditLog
from docview.lifecycle.base import BaseDocumentStore
from docview.lifecycle.exceptions import DocviewError
from docview.lifecycle.service import utcnow
from docview.logging.logger import Log
from docview.search.base import BaseIndexQueue


class CleanupTrashedDocumentsJob:
    """Daily sweep: permanently delete documents left in the trash too long.

    Deletes each document with its history. A document that fails is logged
    and skipped; the run stops when a whole batch fails so it cannot spin on
    the same rows.
    """

    name = "cleanup_trashed_documents"

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
        return self._clock() - timedelta(days=self._settings.trash_retention_days)

    def run(self) -> int:
        """Purge expired trash. Returns the number of documents deleted."""
        cutoff = self.cutoff()
        batch_size = self._settings.trash_cleanup_batch_size
        processed = 0
        deleted = 0
        while True:
            ids = self._store.find_expired_trash(cutoff, batch_size)
            if not ids:
                break
            batch_deleted = sum(1 for document_id in ids if self._purge(document_id))
            processed += len(ids)
            deleted += batch_deleted
            if batch_deleted == 0 or len(ids) < batch_size:
                break
        if processed == 0:
            Log.info("CleanupTrashedDocuments: No expired trashed documents found")
        else:
            Log.info(
                f"CleanupTrashedDocuments: Processed {processed} documents, "
                f"permanently deleted {deleted}"
            )
        return deleted

    def _purge(self, document_id: int) -> bool:
        try:
            self._store.delete_document(document_id)
            self._audit_log.purge(document_id)
            self._index_queue.enqueue(document_id, "delete")
        except DocviewError:
            Log.exception(
                f"CleanupTrashedDocuments: Could not delete document {document_id}",
                document_id=document_id,
            )
            return False
        Log.info(
            f"CleanupTrashedDocuments: Permanently deleted document {document_id}",
            document_id=document_id,
            user_id=self._settings.system_user_id,
        )
        return True
