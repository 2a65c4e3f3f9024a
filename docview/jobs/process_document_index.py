from docview.config.settings import Settings
from docview.database.models import IndexJobRecord
from docview.logging.logger import Log
from docview.search.base import BaseIndexQueue
from docview.worker.job_runner import JobRunner


class ProcessDocumentIndexJob:
    """Hourly sweep: drain pending search-index jobs.

    Handles at most ``index_batch_size`` jobs per run so one slow run cannot
    starve the other scheduled tasks; the rest wait for the next hour.
    """

    name = "process_document_index"

    def __init__(self, queue: BaseIndexQueue, runner: JobRunner, settings: Settings) -> None:
        self._queue = queue
        self._runner = runner
        self._settings = settings

    def run(self) -> int:
        """Process pending jobs. Returns how many completed successfully."""
        succeeded = 0
        attempted = 0
        while attempted < self._settings.index_batch_size:
            job = self._try_claim_job()
            if job is None:
                break
            attempted += 1
            if self._runner.run(job):
                succeeded += 1
        Log.info(f"Search index refresh done: {succeeded}/{attempted} jobs succeeded")
        return succeeded

    def _try_claim_job(self) -> IndexJobRecord | None:
        """Attempt to claim the next pending job. Gracefully handle DB errors."""
        try:
            return self._queue.claim_next_job()
        except Exception as exc:
            Log.warning(f"Database error while claiming index job, will retry next run: {exc}")
            return None
