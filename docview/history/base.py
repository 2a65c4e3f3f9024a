from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Iterator

from docview.history.models import EntryDraft, HistoryEntry


class RestartableQuery(Iterable[HistoryEntry]):
    """Lazy history sequence. Every iteration re-reads storage from the start."""

    def __init__(self, reader: Callable[[], Iterator[HistoryEntry]]) -> None:
        self._reader = reader

    def __iter__(self) -> Iterator[HistoryEntry]:
        return self._reader()


class BaseAuditLog(ABC):
    """Contract for append-only audit history storage.

    Entries for one document are totally ordered by ``sequence``; there is no
    ordering guarantee across documents.
    """

    @abstractmethod
    def append(self, draft: EntryDraft) -> HistoryEntry:
        """Store one entry, assigning the document's next sequence number.

        Appends for the same document are serialized, so sequences are
        1, 2, 3, ... with no gaps or duplicates.
        """

    @abstractmethod
    def query(self, document_id: int) -> RestartableQuery:
        """Entries for ``document_id`` in storage order (oldest first)."""

    @abstractmethod
    def purge(self, document_id: int) -> int:
        """Remove all entries for a permanently deleted document."""
