from collections.abc import Mapping
from dataclasses import dataclass
from typing import ClassVar

from docview.config.settings import Settings
from docview.database.repositories.document_repository import DocumentRepository
from docview.database.repositories.history_repository import HistoryRepository
from docview.database.repositories.index_job_repository import IndexJobRepository
from docview.database.repositories.search_index_repository import SearchIndexRepository
from docview.history.base import BaseAuditLog
from docview.history.memory_audit_log import InMemoryAuditLog
from docview.lifecycle.base import BaseDocumentStore
from docview.lifecycle.memory_store import InMemoryDocumentStore
from docview.search.base import BaseIndexQueue, BaseSearchIndex
from docview.search.memory import InMemoryIndexQueue, InMemorySearchIndex


@dataclass(frozen=True)
class Storage:
    """The persistence collaborators for one backend."""

    documents: BaseDocumentStore
    history: BaseAuditLog
    index_queue: BaseIndexQueue
    search_index: BaseSearchIndex

    @property
    def requires_pool(self) -> bool:
        return isinstance(self.documents, DocumentRepository)


class StorageFactory:
    """Creates the storage adapters selected by settings."""

    BACKENDS: ClassVar[tuple[str, ...]] = ("postgres", "memory")

    @classmethod
    def create(cls, settings: Settings, users: Mapping[int, str] | None = None) -> Storage:
        """Build the adapters for ``settings.storage_backend``.

        ``users`` seeds the in-memory user directory (id -> username) next to
        the system user; PostgreSQL reads usernames from the users table.
        """
        backend = settings.storage_backend.lower()
        if backend == "postgres":
            return Storage(
                documents=DocumentRepository(),
                history=HistoryRepository(),
                index_queue=IndexJobRepository(settings.max_job_attempts),
                search_index=SearchIndexRepository(),
            )
        if backend == "memory":
            return Storage(
                documents=InMemoryDocumentStore(),
                history=InMemoryAuditLog(
                    users={
                        settings.system_user_id: "system",
                        **settings.memory_users,
                        **(users or {}),
                    }
                ),
                index_queue=InMemoryIndexQueue(settings.max_job_attempts),
                search_index=InMemorySearchIndex(),
            )
        raise ValueError(
            f"Unknown storage backend '{backend}'. Choose from: {list(cls.BACKENDS)}"
        )
