import itertools
import threading
from dataclasses import replace

from docview.database.models import IndexJobRecord
from docview.search.base import BaseIndexQueue, BaseSearchIndex
from docview.search.models import INDEX_OPERATIONS, IndexDocument


class InMemoryIndexQueue(BaseIndexQueue):
    """Process-local index job queue with the same state machine as the table."""

    def __init__(self, max_attempts: int) -> None:
        self._max_attempts = max_attempts
        self._jobs: dict[int, IndexJobRecord] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def enqueue(self, document_id: int, operation: str) -> None:
        if operation not in INDEX_OPERATIONS:
            raise ValueError(f"Unknown index operation '{operation}'")
        with self._lock:
            job_id = next(self._ids)
            self._jobs[job_id] = IndexJobRecord(
                id=job_id,
                document_id=document_id,
                operation=operation,
                status="pending",
                attempts=0,
            )

    def claim_next_job(self) -> IndexJobRecord | None:
        with self._lock:
            for job in self._jobs.values():
                if job.status == "pending" and job.attempts < self._max_attempts:
                    job.status = "processing"
                    return replace(job)
        return None

    def mark_done(self, job_id: int) -> None:
        with self._lock:
            self._jobs[job_id].status = "done"

    def mark_failed(self, job_id: int, error: str) -> None:
        with self._lock:
            job = self._jobs[job_id]
            job.status = "failed"
            job.error_message = error

    def increment_attempts(self, job_id: int) -> None:
        with self._lock:
            job = self._jobs[job_id]
            job.attempts += 1
            job.status = "pending"

    def find_by_id(self, job_id: int) -> IndexJobRecord | None:
        """Find a job by ID. Useful for tests."""
        with self._lock:
            job = self._jobs.get(job_id)
            return replace(job) if job else None


class InMemorySearchIndex(BaseSearchIndex):
    """Dictionary-backed search index."""

    def __init__(self) -> None:
        self.documents: dict[int, IndexDocument] = {}

    def upsert(self, document: IndexDocument) -> None:
        self.documents[document.document_id] = document

    def delete(self, document_id: int) -> None:
        self.documents.pop(document_id, None)
