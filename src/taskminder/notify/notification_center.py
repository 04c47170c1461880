# src/taskminder/notify/notification_center.py

from __future__ import annotations

import asyncio
import itertools
import logging
import time
from collections.abc import Callable

from .notification_models import Notification, NotificationAction, NotificationEvent, NotificationKind

logger = logging.getLogger(__name__)

NotificationListener = Callable[[NotificationEvent], None]

DEFAULT_DISMISS_AFTER_SECONDS = 5.0


class NotificationCenter:
    """
    In-process notification stream consumed by the UI.

    Every auto-dismissing notification owns exactly one one-shot timer
    (loop.call_later). The timer is cancelled when the notification is
    dismissed by hand or when the center is closed.
    """

    def __init__(
        self,
        *,
        dismiss_after_seconds: float = DEFAULT_DISMISS_AFTER_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._dismiss_after = max(0.0, float(dismiss_after_seconds))
        self._clock = clock
        self._ids = itertools.count(1)
        self._active: dict[int, Notification] = {}
        self._timers: dict[int, asyncio.TimerHandle] = {}
        self._listeners: list[NotificationListener] = []

    @property
    def active(self) -> tuple[Notification, ...]:
        return tuple(self._active.values())

    def subscribe(self, listener: NotificationListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _publish(self, action: NotificationAction, notification: Notification) -> None:
        event = NotificationEvent(action=action, notification=notification)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Notification listener failed id=%s", notification.id)

    def notify(self, message: str, kind: NotificationKind = NotificationKind.INFO) -> Notification:
        kind = NotificationKind(kind)
        notification = Notification(
            id=next(self._ids),
            message=message,
            kind=kind,
            created_at=self._clock(),
        )
        self._active[notification.id] = notification
        logger.debug("Notification #%s (%s): %s", notification.id, kind.value, message)

        if kind.auto_dismiss:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                # Outside an event loop there is nothing to drive the timer.
                logger.debug("No running loop; notification #%s will not auto-dismiss", notification.id)
            else:
                self._timers[notification.id] = loop.call_later(
                    self._dismiss_after, self._expire, notification.id
                )

        self._publish(NotificationAction.SHOWN, notification)
        return notification

    def _expire(self, notification_id: int) -> None:
        self._timers.pop(notification_id, None)
        self.dismiss(notification_id)

    def dismiss(self, notification_id: int) -> bool:
        timer = self._timers.pop(notification_id, None)
        if timer is not None:
            timer.cancel()

        notification = self._active.pop(notification_id, None)
        if notification is None:
            return False

        self._publish(NotificationAction.DISMISSED, notification)
        return True

    def close(self) -> None:
        """Cancel every pending auto-dismiss timer. Active notifications are kept."""
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self._listeners.clear()
