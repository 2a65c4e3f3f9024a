from collections.abc import Mapping
from dataclasses import dataclass

from docview.config.settings import Settings
from docview.database.connection import close_pool, init_pool
from docview.history.formatting import resolve_timezone
from docview.history.listener import AuditTrailListener
from docview.history.timeline import HistoryTimeline
from docview.jobs.archive_documents import ArchiveDocumentsJob
from docview.jobs.cleanup_trashed_documents import CleanupTrashedDocumentsJob
from docview.jobs.process_document_index import ProcessDocumentIndexJob
from docview.lifecycle.events import BaseEventListener, EventDispatcher
from docview.lifecycle.service import DocumentService
from docview.logging.logger import Log
from docview.notifications.base import BaseNotifier
from docview.notifications.listener import NotificationListener
from docview.notifications.notifier import LogNotifier
from docview.search.indexer import DocumentIndexer
from docview.search.listener import SearchIndexListener
from docview.storage.factory import Storage, StorageFactory
from docview.worker.job_runner import JobRunner
from docview.worker.scheduler import Scheduler, build_schedule


@dataclass(frozen=True)
class Application:
    """Everything a host (HTTP layer, CLI, tests) needs, wired together."""

    storage: Storage
    documents: DocumentService
    timeline: HistoryTimeline
    scheduler: Scheduler


def build_application(
    settings: Settings,
    storage: Storage | None = None,
    users: Mapping[int, str] | None = None,
    notifier: BaseNotifier | None = None,
) -> Application:
    """Wire storage, listeners, the document service, read model and scheduler.

    Listeners run in this order: audit trail, search index, then
    notifications when enabled. ``users`` extends the memory backend's user
    directory and is ignored when ``storage`` is given.
    """
    storage = storage or StorageFactory.create(settings, users=users)
    listeners: list[BaseEventListener] = [
        AuditTrailListener(storage.history),
        SearchIndexListener(storage.index_queue),
    ]
    if settings.notifications_enabled:
        listeners.append(NotificationListener(notifier or LogNotifier()))
    dispatcher = EventDispatcher(listeners)
    documents = DocumentService(storage.documents, dispatcher, settings)
    timeline = HistoryTimeline(
        storage.history,
        order=settings.history_order,
        display_tz=resolve_timezone(settings.display_timezone),
        per_page=settings.history_per_page,
    )
    runner = JobRunner(
        DocumentIndexer(storage.documents, storage.search_index),
        storage.index_queue,
        settings,
    )
    schedule = build_schedule(
        settings,
        archive_job=ArchiveDocumentsJob(
            storage.documents, storage.history, storage.index_queue, settings
        ),
        cleanup_job=CleanupTrashedDocumentsJob(
            storage.documents, storage.history, storage.index_queue, settings
        ),
        index_job=ProcessDocumentIndexJob(storage.index_queue, runner, settings),
    )
    return Application(
        storage=storage,
        documents=documents,
        timeline=timeline,
        scheduler=Scheduler(schedule, settings),
    )


def main() -> None:
    """Entry point: initialize pool -> build dependencies -> start scheduler loop."""
    settings = Settings()
    Log.configure(settings.log_level)
    storage = StorageFactory.create(settings)
    if storage.requires_pool:
        init_pool(settings)

    try:
        app = build_application(settings, storage)
        app.scheduler.run()
    finally:
        close_pool()


if __name__ == "__main__":
    main()
