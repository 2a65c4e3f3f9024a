from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any

from docview.lifecycle.models import Document, FieldChange
from docview.logging.logger import Log


@dataclass(frozen=True)
class DocumentCreated:
    """A document was uploaded."""

    document_id: int
    user_id: int
    occurred_at: datetime
    filename: str = ""


@dataclass(frozen=True)
class MetadataUpdated:
    """One or more metadata fields changed."""

    document_id: int
    user_id: int
    occurred_at: datetime
    changes: Mapping[str, FieldChange] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "changes", MappingProxyType(dict(self.changes)))


@dataclass(frozen=True)
class DocumentProcessed:
    """The processed flag was toggled; ``processed`` is the resulting state."""

    document_id: int
    user_id: int
    occurred_at: datetime
    processed: bool = True


@dataclass(frozen=True)
class DocumentTrashed:
    """The document moved into (``trashed=True``) or out of the trash."""

    document_id: int
    user_id: int
    occurred_at: datetime
    trashed: bool = True


@dataclass(frozen=True)
class DocumentViewed:
    """A user opened the document. Not a mutation."""

    document_id: int
    user_id: int
    occurred_at: datetime


LifecycleEvent = (
    DocumentCreated | MetadataUpdated | DocumentProcessed | DocumentTrashed | DocumentViewed
)


EVENT_KINDS: dict[str, type[LifecycleEvent]] = {
    "created": DocumentCreated,
    "metadata_updated": MetadataUpdated,
    "processed": DocumentProcessed,
    "trashed": DocumentTrashed,
    "viewed": DocumentViewed,
}


def build_event(
    kind: str,
    document: Document,
    user_id: int,
    occurred_at: datetime,
    **payload: Any,
) -> LifecycleEvent:
    """Construct the event for ``kind`` about ``document``.

    Raises:
        ValueError: for an unknown kind or a document without an id.
    """
    if document.id is None:
        raise ValueError("Cannot raise an event for an unsaved document")
    event_cls = EVENT_KINDS.get(kind)
    if event_cls is None:
        raise ValueError(f"Unknown event kind '{kind}'. Choose from: {list(EVENT_KINDS)}")
    return event_cls(
        document_id=document.id, user_id=user_id, occurred_at=occurred_at, **payload
    )


class BaseEventListener(ABC):
    """Contract for anything reacting to lifecycle events."""

    @abstractmethod
    def handle(self, event: LifecycleEvent) -> None:
        """React to a single event. May raise; the dispatcher isolates failures."""


@dataclass(frozen=True)
class ListenerFailure:
    """A listener that raised while handling an event."""

    listener: str
    error: Exception


class EventDispatcher:
    """Synchronous, in-order delivery of events to an explicit listener list."""

    def __init__(self, listeners: Iterable[BaseEventListener] = ()) -> None:
        self._listeners: list[BaseEventListener] = list(listeners)

    @property
    def listeners(self) -> tuple[BaseEventListener, ...]:
        return tuple(self._listeners)

    def subscribe(self, listener: BaseEventListener) -> None:
        self._listeners.append(listener)

    def emit(self, event: LifecycleEvent) -> list[ListenerFailure]:
        """Deliver ``event`` to every listener, in registration order.

        A listener that raises is logged and recorded; later listeners still
        run and nothing is re-raised to the caller.
        """
        failures: list[ListenerFailure] = []
        for listener in self._listeners:
            name = type(listener).__name__
            try:
                listener.handle(event)
            except Exception as exc:
                Log.exception(
                    f"Listener {name} failed on {type(event).__name__}",
                    document_id=event.document_id,
                )
                failures.append(ListenerFailure(listener=name, error=exc))
        return failures
