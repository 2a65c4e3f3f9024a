from abc import ABC, abstractmethod

from docview.notifications.models import Notification


class BaseNotifier(ABC):
    """Contract for delivering document notifications."""

    @abstractmethod
    def send(self, notification: Notification) -> None:
        """Deliver one notification. May raise; the dispatcher isolates failures."""
