"""Non-blocking user notifications (toasts) raised by wizards."""

from __future__ import annotations

import logging

from mlconsole.core.types import NotificationLevel
from mlconsole.wizard.models import Notification

logger = logging.getLogger(__name__)


class Notifier:
    """Collects notifications until the UI drains them."""

    def __init__(self) -> None:
        self._pending: list[Notification] = []

    def notify(self, level: NotificationLevel, message: str) -> Notification:
        notification = Notification(level=level, message=message)
        self._pending.append(notification)
        if level == NotificationLevel.ERROR:
            logger.warning("Notification: %s", message)
        else:
            logger.info("Notification: %s", message)
        return notification

    def success(self, message: str) -> Notification:
        return self.notify(NotificationLevel.SUCCESS, message)

    def info(self, message: str) -> Notification:
        return self.notify(NotificationLevel.INFO, message)

    def error(self, message: str) -> Notification:
        return self.notify(NotificationLevel.ERROR, message)

    @property
    def pending(self) -> list[Notification]:
        return list(self._pending)

    def drain(self) -> list[Notification]:
        """Return and clear all pending notifications."""
        drained, self._pending = self._pending, []
        return drained
