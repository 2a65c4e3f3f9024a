import threading
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any

from docview.config.settings import Settings
from docview.lifecycle.base import BaseDocumentStore
from docview.lifecycle.events import EventDispatcher, ListenerFailure, build_event
from docview.lifecycle.models import Document, DocumentMetadata
from docview.lifecycle.validator import (
    METADATA_FIELDS,
    normalize_value,
    reject_unknown_fields,
    validate_metadata,
)
from docview.logging.logger import Log


def utcnow() -> datetime:
    return datetime.now(UTC)


class DocumentService:
    """Runs document mutations: load -> mutate -> save -> emit.

    Exactly one event is emitted per successful call. A ValidationError from
    the entity aborts the call before anything is saved or emitted. Listener
    failures never turn a successful mutation into an error; the failures of
    the calling thread's most recent mutation are available from
    ``last_listener_failures``.
    """

    def __init__(
        self,
        store: BaseDocumentStore,
        dispatcher: EventDispatcher,
        settings: Settings,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._dispatcher = dispatcher
        self._settings = settings
        self._clock = clock
        self._local = threading.local()

    @property
    def last_listener_failures(self) -> list[ListenerFailure]:
        return getattr(self._local, "failures", [])

    def get_document(self, document_id: int) -> Document:
        return self._store.load_document(document_id)

    def create_document(
        self,
        filename: str,
        user_id: int,
        metadata: Mapping[str, str | None] | None = None,
    ) -> Document:
        """Register an uploaded document and raise DocumentCreated.

        Raises:
            ValidationError: for unknown fields or metadata that breaks the
                field rules (the description is required on upload).
        """
        provided = dict(metadata or {})
        reject_unknown_fields(provided)
        initial = {name: normalize_value(provided.get(name)) for name in METADATA_FIELDS}
        validate_metadata(initial, changed=METADATA_FIELDS)
        now = self._clock()
        document = self._store.insert_document(
            Document(
                id=None,
                filename=filename,
                metadata=DocumentMetadata(**initial),
                created_at=now,
                updated_at=now,
            )
        )
        Log.info(f"Document {document.id} created", document_id=document.id, user_id=user_id)
        self._emit("created", document, user_id, now, filename=document.filename)
        return document

    def update_metadata(
        self, document_id: int, changes: Mapping[str, str | None], user_id: int
    ) -> Document:
        document = self._store.load_document(document_id)
        now = self._clock()
        applied = document.update_metadata(changes, now)
        self._store.save_document(document)
        Log.info(
            f"Document {document_id} metadata updated: {', '.join(applied)}",
            document_id=document_id,
            user_id=user_id,
        )
        self._emit("metadata_updated", document, user_id, now, changes=applied)
        return document

    def set_processed(self, document_id: int, processed: bool, user_id: int) -> Document:
        document = self._store.load_document(document_id)
        now = self._clock()
        document.set_processed(processed, now)
        self._store.save_document(document)
        state = "processed" if processed else "unprocessed"
        Log.info(f"Document {document_id} marked as {state}", document_id=document_id, user_id=user_id)
        self._emit("processed", document, user_id, now, processed=processed)
        return document

    def trash_document(self, document_id: int, user_id: int) -> Document:
        document = self._store.load_document(document_id)
        now = self._clock()
        document.trash(now)
        self._store.save_document(document)
        Log.info(f"Document {document_id} moved to trash", document_id=document_id, user_id=user_id)
        self._emit("trashed", document, user_id, now, trashed=True)
        return document

    def restore_document(self, document_id: int, user_id: int) -> Document:
        document = self._store.load_document(document_id)
        now = self._clock()
        document.restore(now)
        self._store.save_document(document)
        Log.info(f"Document {document_id} restored from trash", document_id=document_id, user_id=user_id)
        self._emit("trashed", document, user_id, now, trashed=False)
        return document

    def record_view(self, document_id: int, user_id: int) -> None:
        """Record that a user opened the document, if view auditing is enabled."""
        if not self._settings.audit_log_document_views:
            return
        document = self._store.load_document(document_id)
        self._emit("viewed", document, user_id, self._clock())

    def _emit(
        self,
        kind: str,
        document: Document,
        user_id: int,
        occurred_at: datetime,
        **payload: Any,
    ) -> None:
        event = build_event(kind, document, user_id, occurred_at, **payload)
        failures = self._dispatcher.emit(event)
        self._local.failures = failures
        if failures:
            Log.warning(
                f"Document {document.id} {kind} succeeded but "
                f"{len(failures)} listener(s) failed",
                document_id=document.id,
            )
