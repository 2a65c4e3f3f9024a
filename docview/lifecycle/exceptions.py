class DocviewError(Exception):
    """Base exception for all document lifecycle errors."""


class ValidationError(DocviewError):
    """Raised when a document operation violates a precondition.

    ``field`` names the metadata field at fault, when there is one, so the
    caller can surface the message next to that field.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class DataIntegrityError(DocviewError):
    """Raised when a stored history entry is missing a required field."""


class DocumentNotFoundError(DocviewError):
    """Raised when a document cannot be found in the store."""


class StorageUnavailableError(DocviewError):
    """Raised when the persistence layer fails. Not retried at this layer."""
