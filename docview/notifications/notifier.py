import threading

from docview.logging.logger import Log
from docview.notifications.base import BaseNotifier
from docview.notifications.models import Notification


class LogNotifier(BaseNotifier):
    """Dispatches notifications to the application log."""

    def send(self, notification: Notification) -> None:
        Log.info(
            f"Notification: {notification.subject}",
            kind=notification.kind,
            document_id=notification.document_id,
            user_id=notification.user_id,
            changed_fields=sorted(notification.changes),
        )


class InMemoryNotifier(BaseNotifier):
    """Records notifications in order instead of delivering them."""

    def __init__(self) -> None:
        self._sent: list[Notification] = []
        self._lock = threading.Lock()

    @property
    def sent(self) -> list[Notification]:
        with self._lock:
            return list(self._sent)

    def send(self, notification: Notification) -> None:
        with self._lock:
            self._sent.append(notification)
