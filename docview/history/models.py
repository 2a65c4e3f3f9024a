from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum


class ActionType(StrEnum):
    """Action types recorded in the audit history."""

    VIEW = "view"
    CREATE = "create"
    UPDATE_METADATA = "update_metadata"
    PROCESS = "process"
    UNPROCESS = "unprocess"
    TRASH = "trash"
    RESTORE = "restore"
    ARCHIVE = "archive"


@dataclass(frozen=True)
class UserRef:
    """The user who performed an action."""

    id: int
    username: str


@dataclass(frozen=True)
class EntryDraft:
    """A history entry before the log assigns its id and sequence."""

    document_id: int
    action_type: ActionType
    user_id: int
    timestamp: datetime
    description: str | None = None


@dataclass(frozen=True)
class HistoryEntry:
    """A stored audit history entry.

    ``action_type`` is kept as the raw stored string so values written by
    newer code still read back. ``user`` is None when the acting user cannot
    be resolved.
    """

    id: int
    document_id: int
    sequence: int
    action_type: str
    timestamp: datetime
    user: UserRef | None
    description: str | None = None


@dataclass(frozen=True)
class TimelineEntry:
    """A history entry ready for display."""

    id: int
    action_type: str
    icon: str
    label: str
    description: str | None
    timestamp: str
    formatted_timestamp: str
    user: UserRef

    @property
    def text(self) -> str:
        """Field-level description when present, else the action label."""
        return self.description or self.label


@dataclass(frozen=True)
class DocumentHistory:
    """Display timeline plus who last changed the document.

    ``entries`` holds one page when pagination was requested; ``total``
    counts the matching entries across all pages.
    """

    document_id: int
    entries: list[TimelineEntry] = field(default_factory=list)
    last_edited: str | None = None
    last_edited_by: UserRef | None = None
    total: int = 0
    page: int = 1
    per_page: int | None = None
    last_page: int = 1


@dataclass(frozen=True)
class ActionTypeCount:
    """How many history entries of one action type a document has."""

    action_type: str
    icon: str
    label: str
    count: int
