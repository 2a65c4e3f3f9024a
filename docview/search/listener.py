from docview.lifecycle.events import (
    BaseEventListener,
    DocumentCreated,
    DocumentProcessed,
    DocumentTrashed,
    DocumentViewed,
    LifecycleEvent,
    MetadataUpdated,
)
from docview.search.base import BaseIndexQueue


class SearchIndexListener(BaseEventListener):
    """Queues a search-index refresh for every event that changes a document."""

    def __init__(self, queue: BaseIndexQueue) -> None:
        self._queue = queue

    def handle(self, event: LifecycleEvent) -> None:
        if isinstance(event, DocumentCreated):
            self._queue.enqueue(event.document_id, "create")
        elif isinstance(event, MetadataUpdated | DocumentProcessed | DocumentTrashed):
            self._queue.enqueue(event.document_id, "update")
        elif isinstance(event, DocumentViewed):
            return
        else:
            raise TypeError(f"No index mapping for event {type(event).__name__}")
