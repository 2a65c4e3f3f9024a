from dataclasses import dataclass
from datetime import datetime


@dataclass
class IndexJobRecord:
    """Represents a row from the document_index_jobs table."""

    id: int
    document_id: int
    operation: str
    status: str
    attempts: int
    error_message: str | None = None
    locked_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
