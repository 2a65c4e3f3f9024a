from docview.history.base import BaseAuditLog
from docview.history.formatting import describe_changes
from docview.history.models import ActionType, EntryDraft
from docview.lifecycle.events import (
    BaseEventListener,
    DocumentCreated,
    DocumentProcessed,
    DocumentTrashed,
    DocumentViewed,
    LifecycleEvent,
    MetadataUpdated,
)


class AuditTrailListener(BaseEventListener):
    """Writes one audit history entry per lifecycle event.

    This is the only writer of history entries for user actions.
    """

    def __init__(self, audit_log: BaseAuditLog) -> None:
        self._audit_log = audit_log

    def handle(self, event: LifecycleEvent) -> None:
        self._audit_log.append(to_entry_draft(event))


def to_entry_draft(event: LifecycleEvent) -> EntryDraft:
    """Map an event to its history entry.

    Raises:
        TypeError: for an event type with no mapping.
    """
    description: str | None = None
    if isinstance(event, DocumentCreated):
        action = ActionType.CREATE
    elif isinstance(event, MetadataUpdated):
        action = ActionType.UPDATE_METADATA
        description = describe_changes(event.changes)
    elif isinstance(event, DocumentProcessed):
        action = ActionType.PROCESS if event.processed else ActionType.UNPROCESS
    elif isinstance(event, DocumentTrashed):
        action = ActionType.TRASH if event.trashed else ActionType.RESTORE
    elif isinstance(event, DocumentViewed):
        action = ActionType.VIEW
    else:
        raise TypeError(f"No history mapping for event {type(event).__name__}")
    return EntryDraft(
        document_id=event.document_id,
        action_type=action,
        user_id=event.user_id,
        timestamp=event.occurred_at,
        description=description,
    )
