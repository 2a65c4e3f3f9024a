from dataclasses import dataclass, field
from datetime import datetime

INDEX_OPERATIONS = ("create", "update", "delete")


@dataclass(frozen=True)
class IndexDocument:
    """Searchable projection of a document."""

    document_id: int
    filename: str
    is_processed: bool
    is_trashed: bool
    metadata: dict[str, str | None] = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None
