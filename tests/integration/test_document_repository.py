from datetime import UTC, datetime, timedelta

import pytest

from docview.database.repositories.document_repository import DocumentRepository
from docview.lifecycle.exceptions import DocumentNotFoundError

NOW = datetime(2025, 6, 1, 1, 0, tzinfo=UTC)


@pytest.mark.integration
class TestDocumentRepositoryRoundTrip:
    def test_insert_then_load(self, seed_document) -> None:
        created = seed_document()

        loaded = DocumentRepository().load_document(created.id)

        assert loaded.filename == "policy_renewal.pdf"
        assert loaded.metadata.policy_number == "PLCY-12345"
        assert loaded.is_processed is False

    def test_save_persists_mutation(self, seed_document) -> None:
        repo = DocumentRepository()
        document = repo.load_document(seed_document().id)

        document.update_metadata({"assigned_to": "456"}, NOW)
        document.set_processed(True, NOW)
        repo.save_document(document)

        loaded = repo.load_document(document.id)
        assert loaded.metadata.assigned_to == "456"
        assert loaded.is_processed is True
        assert loaded.updated_at == NOW

    def test_load_missing_raises(self, integration_pool) -> None:
        with pytest.raises(DocumentNotFoundError):
            DocumentRepository().load_document(-1)


@pytest.mark.integration
class TestDocumentRepositorySweeps:
    def test_archive_hides_document(self, seed_document) -> None:
        repo = DocumentRepository()
        old = seed_document(is_processed=True, updated_at=NOW - timedelta(days=800))
        cutoff = NOW - timedelta(days=730)

        assert old.id in repo.find_archivable(cutoff, 1000)
        assert repo.mark_archived([old.id], NOW) == 1

        assert old.id not in repo.find_archivable(cutoff, 1000)
        with pytest.raises(DocumentNotFoundError):
            repo.load_document(old.id)

    def test_stale_copy_cannot_unarchive(self, seed_document) -> None:
        repo = DocumentRepository()
        old = seed_document(is_processed=True, updated_at=NOW - timedelta(days=800))
        stale = repo.load_document(old.id)
        repo.mark_archived([old.id], NOW)

        stale.set_processed(False, NOW)
        with pytest.raises(DocumentNotFoundError):
            repo.save_document(stale)

        with pytest.raises(DocumentNotFoundError):
            repo.load_document(old.id)

    def test_expired_trash_is_deleted(self, seed_document) -> None:
        repo = DocumentRepository()
        document = repo.load_document(seed_document().id)
        document.trash(NOW - timedelta(days=100))
        repo.save_document(document)

        assert document.id in repo.find_expired_trash(NOW - timedelta(days=90), 500)
        repo.delete_document(document.id)

        with pytest.raises(DocumentNotFoundError):
            repo.load_document(document.id)

    def test_delete_refuses_active_document(self, seed_document) -> None:
        created = seed_document()

        with pytest.raises(DocumentNotFoundError, match="not found in trash"):
            DocumentRepository().delete_document(created.id)
