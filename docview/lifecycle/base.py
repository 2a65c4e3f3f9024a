from abc import ABC, abstractmethod
from datetime import datetime

from docview.lifecycle.models import Document


class BaseDocumentStore(ABC):
    """Contract for document persistence adapters.

    Archived documents are outside the active store: ``load_document`` does not
    return them and the sweeps skip them.
    """

    @abstractmethod
    def load_document(self, document_id: int) -> Document:
        """Load an active document.

        Raises:
            DocumentNotFoundError: if no active document has this id.
        """

    @abstractmethod
    def insert_document(self, document: Document) -> Document:
        """Persist a new document and return it with its assigned id."""

    @abstractmethod
    def save_document(self, document: Document) -> None:
        """Persist the current state of an existing document.

        Raises:
            DocumentNotFoundError: if the document no longer exists.
        """

    @abstractmethod
    def find_archivable(self, cutoff: datetime, limit: int) -> list[int]:
        """Ids of processed, non-trashed documents last updated before ``cutoff``."""

    @abstractmethod
    def mark_archived(self, document_ids: list[int], archived_at: datetime) -> int:
        """Move documents out of the active store. Returns how many were archived."""

    @abstractmethod
    def find_expired_trash(self, cutoff: datetime, limit: int) -> list[int]:
        """Ids of documents trashed before ``cutoff``."""

    @abstractmethod
    def delete_document(self, document_id: int) -> None:
        """Permanently delete a trashed document.

        Raises:
            DocumentNotFoundError: if the document is gone or no longer trashed.
        """
