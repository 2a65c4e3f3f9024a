import itertools
import threading
from collections import defaultdict
from collections.abc import Iterator, Mapping

from docview.history.base import BaseAuditLog, RestartableQuery
from docview.history.models import EntryDraft, HistoryEntry, UserRef


class InMemoryAuditLog(BaseAuditLog):
    """Process-local audit log with a lock per document.

    Usernames are resolved from the user directory at append time; an id the
    directory does not know is stored without a user, the same way a dangling
    user reference reads back from the database.
    """

    def __init__(self, users: Mapping[int, str] | None = None) -> None:
        self._users: dict[int, str] = dict(users or {})
        self._entries: dict[int, list[HistoryEntry]] = defaultdict(list)
        self._document_locks: dict[int, threading.Lock] = {}
        self._registry_lock = threading.Lock()
        self._ids = itertools.count(1)

    def register_user(self, user_id: int, username: str) -> None:
        self._users[user_id] = username

    def append(self, draft: EntryDraft) -> HistoryEntry:
        with self._lock_for(draft.document_id):
            entries = self._entries[draft.document_id]
            username = self._users.get(draft.user_id)
            entry = HistoryEntry(
                id=next(self._ids),
                document_id=draft.document_id,
                sequence=len(entries) + 1,
                action_type=str(draft.action_type),
                timestamp=draft.timestamp,
                user=UserRef(draft.user_id, username) if username is not None else None,
                description=draft.description,
            )
            entries.append(entry)
        return entry

    def query(self, document_id: int) -> RestartableQuery:
        return RestartableQuery(lambda: self._read(document_id))

    def purge(self, document_id: int) -> int:
        with self._lock_for(document_id):
            removed = self._entries.pop(document_id, [])
        with self._registry_lock:
            self._document_locks.pop(document_id, None)
        return len(removed)

    def _read(self, document_id: int) -> Iterator[HistoryEntry]:
        with self._lock_for(document_id):
            snapshot = list(self._entries.get(document_id, ()))
        yield from snapshot

    def _lock_for(self, document_id: int) -> threading.Lock:
        with self._registry_lock:
            lock = self._document_locks.get(document_id)
            if lock is None:
                lock = self._document_locks[document_id] = threading.Lock()
            return lock
