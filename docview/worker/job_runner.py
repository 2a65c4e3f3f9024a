from docview.config.settings import Settings
from docview.database.models import IndexJobRecord
from docview.logging.logger import Log
from docview.search.base import BaseIndexQueue
from docview.search.indexer import DocumentIndexer


class JobRunner:
    """Run one index job, catch exceptions, and apply retry logic."""

    def __init__(
        self,
        indexer: DocumentIndexer,
        queue: BaseIndexQueue,
        settings: Settings,
    ) -> None:
        self._indexer = indexer
        self._queue = queue
        self._settings = settings

    def run(self, job: IndexJobRecord) -> bool:
        """Execute a single job with error handling. Returns True on success."""
        Log.info(
            f"Running index job {job.id} ({job.operation} document {job.document_id}, "
            f"attempt {job.attempts + 1})"
        )
        try:
            self._indexer.process(job)
            self._queue.mark_done(job.id)
            Log.info(f"Index job {job.id} completed successfully")
            return True
        except Exception as exc:
            self._handle_failure(job, exc)
            return False

    def _handle_failure(self, job: IndexJobRecord, exc: Exception) -> None:
        """Increment attempts; mark failed if at max, otherwise back to pending."""
        Log.error(f"Index job {job.id} failed: {exc}", document_id=job.document_id)
        if job.attempts + 1 >= self._settings.max_job_attempts:
            self._queue.mark_failed(job.id, str(exc))
            Log.error(f"Index job {job.id} permanently failed after {job.attempts + 1} attempts")
        else:
            self._queue.increment_attempts(job.id)
            Log.warning(f"Index job {job.id} will be retried (attempt {job.attempts + 1})")
