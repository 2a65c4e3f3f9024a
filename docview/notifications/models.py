from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any

SUBJECTS: dict[str, str] = {
    "created": "New Document Created",
    "updated": "Document Updated",
    "processed": "Document Marked as Processed",
    "unprocessed": "Document Marked as Unprocessed",
    "trashed": "Document Moved to Trash",
}


@dataclass(frozen=True)
class Notification:
    """A message about a document change, ready for a notifier to deliver.

    ``changes`` maps a field name to its ``(old, new)`` pair for updates.
    """

    kind: str
    subject: str
    document_id: int
    user_id: int
    occurred_at: datetime
    changes: Mapping[str, tuple[Any, Any]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "changes", MappingProxyType(dict(self.changes)))
