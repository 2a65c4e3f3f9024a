from abc import ABC, abstractmethod

from docview.database.models import IndexJobRecord
from docview.search.models import IndexDocument


class BaseIndexQueue(ABC):
    """Contract for the queue of pending search-index jobs."""

    @abstractmethod
    def enqueue(self, document_id: int, operation: str) -> None:
        """Queue an index operation (create, update or delete) for a document."""

    @abstractmethod
    def claim_next_job(self) -> IndexJobRecord | None:
        """Claim the oldest pending job, or None when the queue is empty."""

    @abstractmethod
    def mark_done(self, job_id: int) -> None: ...

    @abstractmethod
    def mark_failed(self, job_id: int, error: str) -> None:
        """Mark a job as permanently failed."""

    @abstractmethod
    def increment_attempts(self, job_id: int) -> None:
        """Count a failed attempt and return the job to pending."""


class BaseSearchIndex(ABC):
    """Contract for the search index the indexer writes to."""

    @abstractmethod
    def upsert(self, document: IndexDocument) -> None: ...

    @abstractmethod
    def delete(self, document_id: int) -> None: ...
