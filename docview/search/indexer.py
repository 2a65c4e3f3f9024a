from docview.database.models import IndexJobRecord
from docview.lifecycle.base import BaseDocumentStore
from docview.lifecycle.exceptions import DocumentNotFoundError
from docview.logging.logger import Log
from docview.search.base import BaseSearchIndex
from docview.search.models import IndexDocument


class DocumentIndexer:
    """Applies one index job to the search index.

    Trashed documents are indexed with their flags; documents that are gone
    or archived are removed from the index.
    """

    def __init__(self, store: BaseDocumentStore, search_index: BaseSearchIndex) -> None:
        self._store = store
        self._search_index = search_index

    def process(self, job: IndexJobRecord) -> None:
        if job.operation == "delete":
            self._search_index.delete(job.document_id)
            Log.info(f"Removed document {job.document_id} from search index")
            return
        if job.operation not in ("create", "update"):
            raise ValueError(f"Invalid index operation '{job.operation}' for job {job.id}")
        try:
            document = self._store.load_document(job.document_id)
        except DocumentNotFoundError:
            Log.warning(
                f"Document {job.document_id} not found for index {job.operation}, removing from index"
            )
            self._search_index.delete(job.document_id)
            return
        self._search_index.upsert(
            IndexDocument(
                document_id=job.document_id,
                filename=document.filename,
                is_processed=document.is_processed,
                is_trashed=document.is_trashed,
                metadata=document.metadata.as_dict(),
                created_at=document.created_at,
                updated_at=document.updated_at,
            )
        )
        Log.debug(f"Indexed document {job.document_id} ({job.operation})")
