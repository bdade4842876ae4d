"""Transient, auto-dismissing notifications for action outcomes."""
import itertools
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from medicore import config


class NotificationKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    LOADING = "loading"  # stays until dismissed


@dataclass
class Notification:
    id: int
    kind: NotificationKind
    message: str
    created_at: float
    ttl: Optional[float]

    def expired(self, now: float) -> bool:
        return self.ttl is not None and now - self.created_at >= self.ttl


class Notifier:
    """
    Collects notifications and hands each new one to an optional listener.

    Expired notifications drop out of ``active()``; loading notifications
    have no TTL and stay until ``dismiss()``.
    """

    def __init__(
        self,
        ttl: float = config.NOTIFICATION_TTL_SECONDS,
        listener: Optional[Callable[[Notification], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self.listener = listener
        self.clock = clock
        self._items: List[Notification] = []
        self._ids = itertools.count(1)

    def success(self, message: str) -> int:
        return self._push(NotificationKind.SUCCESS, message, self.ttl)

    def error(self, message: str) -> int:
        return self._push(NotificationKind.ERROR, message, self.ttl)

    def warning(self, message: str) -> int:
        return self._push(NotificationKind.WARNING, message, self.ttl)

    def loading(self, message: str) -> int:
        return self._push(NotificationKind.LOADING, message, None)

    def dismiss(self, notification_id: int) -> None:
        self._items = [n for n in self._items if n.id != notification_id]

    def active(self) -> List[Notification]:
        self._prune(self.clock())
        return list(self._items)

    def _prune(self, now: float):
        self._items = [n for n in self._items if not n.expired(now)]

    def _push(self, kind: NotificationKind, message: str, ttl: Optional[float]) -> int:
        now = self.clock()
        self._prune(now)
        notification = Notification(
            id=next(self._ids),
            kind=kind,
            message=message,
            created_at=now,
            ttl=ttl,
        )
        self._items.append(notification)
        if self.listener is not None:
            self.listener(notification)
        return notification.id
