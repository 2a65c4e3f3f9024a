from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock, patch

from docview.config.settings import Settings
from docview.history.memory_audit_log import InMemoryAuditLog
from docview.history.models import ActionType, EntryDraft
from docview.jobs.cleanup_trashed_documents import CleanupTrashedDocumentsJob
from docview.lifecycle.exceptions import DocumentNotFoundError, StorageUnavailableError
from docview.search.memory import InMemoryIndexQueue

NOW = datetime(2025, 6, 1, 2, 0, tzinfo=UTC)
EXPIRED = NOW - timedelta(days=91)
FRESH = NOW - timedelta(days=10)


def _make_job(store, audit_log, batch_size: int = 500):
    queue = InMemoryIndexQueue(max_attempts=3)
    settings = Settings(storage_backend="memory", trash_cleanup_batch_size=batch_size)
    job = CleanupTrashedDocumentsJob(store, audit_log, queue, settings, clock=lambda: NOW)
    return job, queue


def _add_history(audit_log: InMemoryAuditLog, document_id: int) -> None:
    audit_log.append(
        EntryDraft(
            document_id=document_id,
            action_type=ActionType.TRASH,
            user_id=456,
            timestamp=EXPIRED,
        )
    )


class TestCleanupTrashedDocuments:
    def test_cutoff_uses_retention(self, store, audit_log) -> None:
        job, _queue = _make_job(store, audit_log)

        assert job.cutoff() == NOW - timedelta(days=90)

    def test_deletes_expired_trash_with_history(self, store, audit_log, make_document) -> None:
        make_document(1, is_trashed=True, trashed_at=EXPIRED)
        make_document(2, is_trashed=True, trashed_at=FRESH)
        make_document(3)
        _add_history(audit_log, 1)
        _add_history(audit_log, 2)
        job, queue = _make_job(store, audit_log)

        assert job.run() == 1

        assert store.find_expired_trash(NOW, 10) == [2]
        assert list(audit_log.query(1)) == []
        assert len(list(audit_log.query(2))) == 1
        claimed = queue.claim_next_job()
        assert (claimed.document_id, claimed.operation) == (1, "delete")

    def test_processes_in_batches(self, store, audit_log, make_document) -> None:
        for document_id in range(1, 6):
            make_document(document_id, is_trashed=True, trashed_at=EXPIRED)
        job, _queue = _make_job(store, audit_log, batch_size=2)

        assert job.run() == 5

    def test_nothing_to_clean(self, store, audit_log) -> None:
        job, _queue = _make_job(store, audit_log)

        assert job.run() == 0

    def test_failed_document_is_skipped(self, audit_log) -> None:
        store = MagicMock()
        store.find_expired_trash.side_effect = [[1, 2], []]
        store.delete_document.side_effect = [StorageUnavailableError("down"), None]
        queue = MagicMock()
        settings = Settings(storage_backend="memory")
        job = CleanupTrashedDocumentsJob(store, audit_log, queue, settings, clock=lambda: NOW)

        assert job.run() == 1
        queue.enqueue.assert_called_once_with(2, "delete")

    def test_stops_when_whole_batch_fails(self, audit_log) -> None:
        store = MagicMock()
        store.find_expired_trash.return_value = [1, 2]
        store.delete_document.side_effect = DocumentNotFoundError("gone")
        settings = Settings(storage_backend="memory", trash_cleanup_batch_size=2)
        job = CleanupTrashedDocumentsJob(store, audit_log, MagicMock(), settings, clock=lambda: NOW)

        assert job.run() == 0
        assert store.find_expired_trash.call_count == 1

    def test_purge_is_logged_against_system_user(self, store, audit_log, make_document) -> None:
        make_document(1, is_trashed=True, trashed_at=EXPIRED)
        job, _queue = _make_job(store, audit_log)

        with patch("docview.jobs.cleanup_trashed_documents.Log") as mock_log:
            job.run()

        mock_log.info.assert_any_call(
            "CleanupTrashedDocuments: Permanently deleted document 1",
            document_id=1,
            user_id=1,
        )
