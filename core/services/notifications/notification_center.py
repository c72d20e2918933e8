"""
Notification Center
In-process toast bus: producers show/update/remove notifications, consumers
(CLI printer, API stream, tests) subscribe to the change events.
"""
import asyncio
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional

from infrastructure.logging.logger import get_logger

logger = get_logger(__name__)

DEFAULT_DURATION_MS = 5000


class NotificationType(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
    LOADING = "loading"


class NotificationEvent(str, Enum):
    SHOWN = "shown"
    UPDATED = "updated"
    REMOVED = "removed"


@dataclass
class Notification:
    id: str
    type: NotificationType
    title: str
    message: str
    duration: int = DEFAULT_DURATION_MS
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "title": self.title,
            "message": self.message,
            "duration": self.duration,
        }


Listener = Callable[[NotificationEvent, Notification], None]


class NotificationCenter:
    """
    Holds the active notifications and fans out change events

    A listener that raises is logged and skipped; the other listeners
    still receive the event.
    """

    def __init__(self):
        self._active: Dict[str, Notification] = {}
        self._listeners: List[Listener] = []

    @property
    def active(self) -> List[Notification]:
        return list(self._active.values())

    def get(self, notification_id: str) -> Optional[Notification]:
        return self._active.get(notification_id)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns the unsubscribe function"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def show(
        self,
        type: NotificationType,
        title: str,
        message: str,
        duration: int = DEFAULT_DURATION_MS,
    ) -> str:
        notification = Notification(
            id=uuid.uuid4().hex,
            type=NotificationType(type),
            title=title,
            message=message,
            duration=duration,
        )
        self._active[notification.id] = notification
        self._publish(NotificationEvent.SHOWN, notification)
        return notification.id

    def update(self, notification_id: str, **changes) -> Optional[Notification]:
        """Patch type/title/message/duration of an active notification"""
        current = self._active.get(notification_id)
        if current is None:
            logger.debug(f"Notification {notification_id} already removed")
            return None

        if "type" in changes:
            changes["type"] = NotificationType(changes["type"])
        updated = replace(current, **changes)
        self._active[notification_id] = updated
        self._publish(NotificationEvent.UPDATED, updated)
        return updated

    def remove(self, notification_id: str) -> None:
        notification = self._active.pop(notification_id, None)
        if notification is not None:
            self._publish(NotificationEvent.REMOVED, notification)

    def remove_after(self, notification_id: str, delay_ms: int) -> None:
        """Schedule removal on the running loop; immediate when there is none"""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.remove(notification_id)
            return
        loop.call_later(delay_ms / 1000, self.remove, notification_id)

    def _publish(self, event: NotificationEvent, notification: Notification) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, notification)
            except Exception as e:
                logger.error(f"❌ Notification listener failed on {event.value}: {e}")
