from docview.lifecycle.events import (
    BaseEventListener,
    DocumentCreated,
    DocumentProcessed,
    DocumentTrashed,
    DocumentViewed,
    LifecycleEvent,
    MetadataUpdated,
)
from docview.notifications.base import BaseNotifier
from docview.notifications.models import SUBJECTS, Notification


class NotificationListener(BaseEventListener):
    """Turns document changes into notifications.

    Views and restores from the trash are not notified.
    """

    def __init__(self, notifier: BaseNotifier) -> None:
        self._notifier = notifier

    def handle(self, event: LifecycleEvent) -> None:
        kind = self._kind_for(event)
        if kind is None:
            return
        changes = {}
        if isinstance(event, MetadataUpdated):
            changes = {name: (change.old, change.new) for name, change in event.changes.items()}
        self._notifier.send(
            Notification(
                kind=kind,
                subject=SUBJECTS[kind],
                document_id=event.document_id,
                user_id=event.user_id,
                occurred_at=event.occurred_at,
                changes=changes,
            )
        )

    @staticmethod
    def _kind_for(event: LifecycleEvent) -> str | None:
        if isinstance(event, DocumentCreated):
            return "created"
        if isinstance(event, MetadataUpdated):
            return "updated"
        if isinstance(event, DocumentProcessed):
            return "processed" if event.processed else "unprocessed"
        if isinstance(event, DocumentTrashed):
            return "trashed" if event.trashed else None
        if isinstance(event, DocumentViewed):
            return None
        raise TypeError(f"No notification mapping for event {type(event).__name__}")
