"""
Item Model — The Synchronized Unit
===================================
One entry of the client-visible list. Items are immutable values: every
change produces a new Item, so a previously held Item is always a valid
rollback target.

Invariant:
    completed_at is present  <=>  status is COMPLETED
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional, Any


# ─────────────────────────────────────────────────────────────
#  Status
# ─────────────────────────────────────────────────────────────

class ItemStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


def today_utc() -> date:
    """The date used for locally guessed completion stamps."""
    return datetime.now(timezone.utc).date()


def parse_date(value: str) -> date:
    """Truncate an ISO-8601 / RFC3339 timestamp to its date part.

    "2024-01-01T09:30:00Z" and "2024-01-01" both give date(2024, 1, 1).
    Raises ValueError for anything else.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"expected an ISO date string, got {value!r}")
    return date.fromisoformat(value.strip().split("T")[0])


# ─────────────────────────────────────────────────────────────
#  Item
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Item:
    """A single synchronized item.

    The id is assigned by the remote source when the item is created and
    is never reused. The title doubles as the resource path the item
    tracks (e.g. "/app/db/credential").
    """

    id: str                                    # Server-assigned, immutable
    title: str                                 # Display label / resource path
    status: ItemStatus = ItemStatus.PENDING
    created_at: date = field(default_factory=today_utc)
    completed_at: Optional[date] = None        # Present only when completed

    def __post_init__(self):
        if not isinstance(self.status, ItemStatus):
            object.__setattr__(self, "status", ItemStatus(self.status))
        completed = self.status is ItemStatus.COMPLETED
        if completed != (self.completed_at is not None):
            raise ValueError(
                f"Item {self.id}: completed_at must be set if and only if "
                f"status is completed (status={self.status.value}, "
                f"completed_at={self.completed_at})"
            )

    @property
    def is_completed(self) -> bool:
        return self.status is ItemStatus.COMPLETED

    def toggled(self, today: Optional[date] = None) -> Item:
        """Return the locally guessed result of flipping completion."""
        if self.is_completed:
            return replace(self, status=ItemStatus.PENDING, completed_at=None)
        return replace(
            self,
            status=ItemStatus.COMPLETED,
            completed_at=today or today_utc(),
        )

    def to_dict(self) -> dict:
        """Serialize to a JSON-friendly dict."""
        return {
            "id": self.id,
            "title": self.title,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Item:
        """Deserialize from a dict produced by to_dict()."""
        completed_at = data.get("completed_at")
        return cls(
            id=str(data["id"]),
            title=data["title"],
            status=ItemStatus(data.get("status", ItemStatus.PENDING.value)),
            created_at=parse_date(data["created_at"]),
            completed_at=parse_date(completed_at) if completed_at else None,
        )
