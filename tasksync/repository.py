"""
Todo Repository — Authoritative In-Memory Table
================================================
The server side of the collection: assigns ids, stamps timestamps and
enforces uniqueness of paths. Shared by the reference HTTP server and the
in-process remote, so both answer with identical semantics.

Ids are monotonically increasing integers and are never reused, even
after a delete.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Callable, Optional


class RepositoryError(Exception):
    """Application-level failure with the HTTP status it maps to."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


@dataclass(frozen=True)
class TodoRecord:
    id: int
    secret_path: str
    is_completed: bool
    created_at: datetime
    completed_at: Optional[datetime] = None

    def to_wire(self) -> dict:
        """The camelCase shape the client decodes."""
        return {
            "id": self.id,
            "secretPath": self.secret_path,
            "isCompleted": self.is_completed,
            "createdAt": _rfc3339(self.created_at),
            "completedAt": _rfc3339(self.completed_at) if self.completed_at else None,
        }


def _rfc3339(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TodoRepository:
    """Thread-safe table of TodoRecords keyed by id, in insertion order."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self._clock = clock
        self._lock = threading.Lock()
        self._rows: dict[int, TodoRecord] = {}
        self._next_id = 1

    def list(self) -> list[TodoRecord]:
        with self._lock:
            return list(self._rows.values())

    def get(self, todo_id: int) -> TodoRecord:
        with self._lock:
            return self._require(todo_id)

    def create(self, secret_path: str) -> TodoRecord:
        path = (secret_path or "").strip()
        if not path:
            raise RepositoryError(400, "secretPath is required")
        with self._lock:
            if self._find_path(path) is not None:
                raise RepositoryError(409, "secretPath already exists")
            return self._insert(path)

    def toggle_complete(self, todo_id: int) -> TodoRecord:
        with self._lock:
            row = self._require(todo_id)
            if row.is_completed:
                row = replace(row, is_completed=False, completed_at=None)
            else:
                row = replace(row, is_completed=True, completed_at=self._clock())
            self._rows[todo_id] = row
            return row

    def complete(self, todo_id: int) -> TodoRecord:
        """Mark done; a row that is already done keeps its completion time."""
        with self._lock:
            row = self._require(todo_id)
            if not row.is_completed:
                row = replace(row, is_completed=True, completed_at=self._clock())
                self._rows[todo_id] = row
            return row

    def delete(self, todo_id: int) -> None:
        with self._lock:
            self._require(todo_id)
            del self._rows[todo_id]

    def upsert_from_webhook(self, secret_path: str) -> TodoRecord:
        """Existing path → reset to pending; unknown path → new row."""
        path = (secret_path or "").strip()
        if not path:
            raise RepositoryError(400, "secretPath in webhook payload is required and cannot be empty")
        with self._lock:
            row = self._find_path(path)
            if row is None:
                return self._insert(path)
            row = replace(row, is_completed=False, completed_at=None)
            self._rows[row.id] = row
            return row

    # ── Internals (lock held) ────────────────────────────────

    def _require(self, todo_id: int) -> TodoRecord:
        row = self._rows.get(todo_id)
        if row is None:
            raise RepositoryError(404, "todo not found")
        return row

    def _find_path(self, path: str) -> Optional[TodoRecord]:
        for row in self._rows.values():
            if row.secret_path == path:
                return row
        return None

    def _insert(self, path: str) -> TodoRecord:
        row = TodoRecord(
            id=self._next_id,
            secret_path=path,
            is_completed=False,
            created_at=self._clock(),
        )
        self._next_id += 1
        self._rows[row.id] = row
        return row
