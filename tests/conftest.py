from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import pytest

from docview.config.settings import Settings
from docview.history.listener import AuditTrailListener
from docview.history.memory_audit_log import InMemoryAuditLog
from docview.lifecycle.events import EventDispatcher
from docview.lifecycle.memory_store import InMemoryDocumentStore
from docview.lifecycle.models import Document, DocumentMetadata
from docview.lifecycle.service import DocumentService

EDITOR_ID = 456
EDITOR_NAME = "jsmith"


class FakeClock:
    """Callable clock that advances one minute per call unless pinned."""

    def __init__(self, start: datetime, step: timedelta = timedelta(minutes=1)) -> None:
        self.now = start
        self._step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self._step
        return current


@pytest.fixture()
def settings() -> Settings:
    return Settings(storage_backend="memory", display_timezone="UTC", history_order="desc")


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(datetime(2023, 5, 12, 10, 45, tzinfo=UTC))


@pytest.fixture()
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture()
def audit_log() -> InMemoryAuditLog:
    return InMemoryAuditLog(users={EDITOR_ID: EDITOR_NAME, 1: "system"})


@pytest.fixture()
def service(
    store: InMemoryDocumentStore,
    audit_log: InMemoryAuditLog,
    settings: Settings,
    clock: FakeClock,
) -> DocumentService:
    dispatcher = EventDispatcher([AuditTrailListener(audit_log)])
    return DocumentService(store, dispatcher, settings, clock=clock)


@pytest.fixture()
def make_document(store: InMemoryDocumentStore) -> Callable[..., Document]:
    """Insert a document straight into the store, bypassing events."""

    def _make(document_id: int = 123, **overrides: object) -> Document:
        fields: dict[str, object] = {
            "id": document_id,
            "filename": "policy_renewal.pdf",
            "metadata": DocumentMetadata(
                policy_number="PLCY-12345",
                document_description="Policy Document",
            ),
            "created_at": datetime(2023, 5, 1, 9, 0, tzinfo=UTC),
            "updated_at": datetime(2023, 5, 1, 9, 0, tzinfo=UTC),
        }
        fields.update(overrides)
        return store.insert_document(Document(**fields))  # type: ignore[arg-type]

    return _make
