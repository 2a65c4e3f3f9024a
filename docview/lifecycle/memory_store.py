import itertools
import threading
from dataclasses import replace
from datetime import datetime

from docview.lifecycle.base import BaseDocumentStore
from docview.lifecycle.exceptions import DocumentNotFoundError
from docview.lifecycle.models import Document


class InMemoryDocumentStore(BaseDocumentStore):
    """Process-local document store.

    Holds copies, so a loaded document can be mutated freely and nothing is
    visible to other readers until ``save_document``. Useful for local
    development and tests.
    """

    def __init__(self) -> None:
        self._documents: dict[int, Document] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def load_document(self, document_id: int) -> Document:
        with self._lock:
            document = self._documents.get(document_id)
            if document is None or document.archived_at is not None:
                raise DocumentNotFoundError(f"Document {document_id} not found")
            return replace(document)

    def insert_document(self, document: Document) -> Document:
        with self._lock:
            if document.id is None:
                new_id = next(self._ids)
                while new_id in self._documents:
                    new_id = next(self._ids)
                document = replace(document, id=new_id)
            elif document.id in self._documents:
                raise ValueError(f"Document {document.id} already exists")
            self._documents[document.id] = replace(document)
            return replace(document)

    def save_document(self, document: Document) -> None:
        with self._lock:
            stored = self._documents.get(document.id)
            if stored is None or stored.archived_at is not None:
                raise DocumentNotFoundError(f"Document {document.id} not found")
            self._documents[document.id] = replace(document)

    def find_archivable(self, cutoff: datetime, limit: int) -> list[int]:
        with self._lock:
            ids = [
                doc_id
                for doc_id, doc in sorted(self._documents.items())
                if doc.is_processed
                and not doc.is_trashed
                and doc.archived_at is None
                and doc.updated_at is not None
                and doc.updated_at < cutoff
            ]
        return ids[:limit]

    def mark_archived(self, document_ids: list[int], archived_at: datetime) -> int:
        archived = 0
        with self._lock:
            for doc_id in document_ids:
                document = self._documents.get(doc_id)
                if document is None or document.archived_at is not None:
                    continue
                self._documents[doc_id] = replace(document, archived_at=archived_at)
                archived += 1
        return archived

    def find_expired_trash(self, cutoff: datetime, limit: int) -> list[int]:
        with self._lock:
            ids = [
                doc_id
                for doc_id, doc in sorted(self._documents.items())
                if doc.is_trashed
                and doc.archived_at is None
                and doc.trashed_at is not None
                and doc.trashed_at < cutoff
            ]
        return ids[:limit]

    def delete_document(self, document_id: int) -> None:
        with self._lock:
            document = self._documents.get(document_id)
            if document is None or not document.is_trashed:
                raise DocumentNotFoundError(
                    f"Document {document_id} not found in trash"
                )
            del self._documents[document_id]
