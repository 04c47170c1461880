# src/taskminder/notify/notification_models.py

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class NotificationKind(StrEnum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
    EXPIRED = "expired"

    @property
    def auto_dismiss(self) -> bool:
        # Errors and expirations stay on screen until dismissed by hand.
        return self not in (NotificationKind.ERROR, NotificationKind.EXPIRED)


class NotificationAction(StrEnum):
    SHOWN = "shown"
    DISMISSED = "dismissed"


@dataclass(slots=True, frozen=True)
class Notification:
    id: int
    message: str
    kind: NotificationKind
    created_at: float


@dataclass(slots=True, frozen=True)
class NotificationEvent:
    action: NotificationAction
    notification: Notification
