"""
Notification Sink — User-Facing Failure Reports
================================================
Collects {severity, message} events for the presentation layer (toasts,
status lines). The sink only records and fans out; it never touches the
item store.

Failure policies:
    SILENT    — log the failure, surface nothing (background polling)
    REPORTED  — log the failure and emit one error notification
                (user-initiated mutations)
"""

from __future__ import annotations

import itertools
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)

_ids = itertools.count(1)


# ─────────────────────────────────────────────────────────────
#  Notification
# ─────────────────────────────────────────────────────────────

class Severity(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class Notification:
    severity: Severity
    message: str
    created_at: float = field(default_factory=time.time)
    id: int = field(default_factory=lambda: next(_ids))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "severity": self.severity.value,
            "message": self.message,
            "created_at": self.created_at,
        }


Subscriber = Callable[[Notification], None]


class NotificationSink:
    """Append-only stream of notifications with live subscribers."""

    def __init__(self, max_history: int = 100):
        self.max_history = max_history
        self._history: list[Notification] = []
        self._subscribers: list[Subscriber] = []

    def emit(self, severity: Severity, message: str) -> Notification:
        note = Notification(severity=Severity(severity), message=message)
        self._history.append(note)
        if len(self._history) > self.max_history:
            del self._history[: len(self._history) - self.max_history]
        for subscriber in list(self._subscribers):
            subscriber(note)
        return note

    def error(self, message: str) -> Notification:
        return self.emit(Severity.ERROR, message)

    def warning(self, message: str) -> Notification:
        return self.emit(Severity.WARNING, message)

    def info(self, message: str) -> Notification:
        return self.emit(Severity.INFO, message)

    def success(self, message: str) -> Notification:
        return self.emit(Severity.SUCCESS, message)

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        """Receive every future notification. Returns an unsubscribe."""
        self._subscribers.append(subscriber)

        def _unsubscribe():
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return _unsubscribe

    def dismiss(self, note_id: int) -> bool:
        """Drop one notification from the history (toast closed)."""
        for i, note in enumerate(self._history):
            if note.id == note_id:
                del self._history[i]
                return True
        return False

    def clear(self):
        self._history.clear()

    @property
    def history(self) -> list[Notification]:
        return list(self._history)

    def __len__(self) -> int:
        return len(self._history)


# ─────────────────────────────────────────────────────────────
#  Failure Policies
# ─────────────────────────────────────────────────────────────

class FailurePolicy(str, Enum):
    SILENT = "silent"
    REPORTED = "reported"


def handle_failure(
    policy: FailurePolicy,
    error: Exception,
    sink: Optional[NotificationSink] = None,
    context: str = "",
) -> Optional[Notification]:
    """Apply a failure policy to one error.

    Returns the emitted notification under REPORTED, None under SILENT.
    """
    message = getattr(error, "message", None) or str(error) or type(error).__name__
    prefix = f"{context}: " if context else ""
    logger.warning("%s%s", prefix, message)

    if policy is FailurePolicy.SILENT:
        return None
    if sink is None:
        logger.error("reported failure has no notification sink: %s", message)
        return None
    return sink.error(message)
