from __future__ import annotations

from collections import deque
from typing import Callable, Deque, List

from db.models import NOTIFICATION_TYPES, Notification, NotificationType
from utils.logger import get_logger
from utils.pure import new_id

_logger = get_logger(__name__)

ALERT_RING_SIZE = 10

Listener = Callable[[Notification], None]


class NotificationCenter:
    """
    Holds user-facing notifications.

    - notifications: every notification raised this process, oldest first
    - alerts: the newest ALERT_RING_SIZE notices, newest first, shown under
      the bell in the sidebar
    """

    def __init__(self) -> None:
        self.notifications: List[Notification] = []
        self._alerts: Deque[Notification] = deque(maxlen=ALERT_RING_SIZE)
        self._listeners: List[Listener] = []

    @property
    def alerts(self) -> List[Notification]:
        return list(self._alerts)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call listener for every future notify(). Returns an unsubscribe hook."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def notify(self, type: NotificationType, message: str) -> Notification:
        note = self._make(type, message)
        self.notifications.append(note)
        self._alerts.appendleft(note)
        _logger.debug(f"{type}: {message}")
        for listener in list(self._listeners):
            listener(note)
        return note

    def push_alert(self, type: NotificationType, message: str) -> Notification:
        """Put a standing message in the alert ring only, no toast."""
        note = self._make(type, message)
        self._alerts.appendleft(note)
        return note

    def remove_notification(self, notification_id: str) -> None:
        self.notifications = [
            n for n in self.notifications if n.id != notification_id
        ]

    def clear_alerts(self) -> None:
        self._alerts.clear()

    @staticmethod
    def _make(type: NotificationType, message: str) -> Notification:
        if type not in NOTIFICATION_TYPES:
            raise ValueError(f"unknown notification type: {type!r}")
        return Notification(id=new_id("note"), type=type, message=message)
