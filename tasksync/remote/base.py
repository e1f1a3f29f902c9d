"""
Remote Base — Abstract Interface to the Source of Truth
========================================================
Transport-agnostic contract for talking to the authoritative item
collection. All remotes (HTTP, in-process) implement this.

Every failure crosses this boundary as a RemoteError carrying a kind tag,
a numeric status and a human-readable message:

    TransportFailure    status 0   — unreachable, timeout, malformed body
    ValidationFailure   status 0   — well-formed JSON of the wrong shape
    ApplicationFailure  HTTP status — server answered non-2xx {"error": ...}

Remotes never retry; retry policy belongs to the caller.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# ─────────────────────────────────────────────────────────────
#  Failures
# ─────────────────────────────────────────────────────────────

class FailureKind(str, Enum):
    TRANSPORT = "transport"
    VALIDATION = "validation"
    APPLICATION = "application"


class RemoteError(Exception):
    """Uniform failure raised by every remote call."""

    kind: FailureKind = FailureKind.TRANSPORT

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "statusCode": self.status_code,
            "message": self.message,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.status_code}, {self.message!r})"


class TransportFailure(RemoteError):
    kind = FailureKind.TRANSPORT

    def __init__(self, message: str):
        super().__init__(0, message)


class ValidationFailure(RemoteError):
    kind = FailureKind.VALIDATION

    def __init__(self, message: str):
        super().__init__(0, message)


class ApplicationFailure(RemoteError):
    kind = FailureKind.APPLICATION


# ─────────────────────────────────────────────────────────────
#  Configuration
# ─────────────────────────────────────────────────────────────

@dataclass
class RemoteConfig:
    """Configuration for a remote.

    Only populate the fields that apply to the chosen backend.
    """

    remote_name: str = "http"          # "http", "memory"
    base_url: str = ""                 # Collection endpoint (HTTP only)
    timeout: float = 10.0              # Seconds per request
    headers: dict[str, str] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)  # Remote-specific options


# ─────────────────────────────────────────────────────────────
#  BaseRemote
# ─────────────────────────────────────────────────────────────

class BaseRemote(ABC):
    """Abstract base class for remotes.

    All remotes must implement:
        - fetch_all(): read the whole collection
        - create(): submit a title, receive the created item
        - toggle_complete(): flip completion, receive the updated item
        - delete(): remove by id
    """

    def __init__(self, config: RemoteConfig):
        self.config = config

    @abstractmethod
    async def fetch_all(self) -> list:
        """Return every item in server order."""
        ...

    @abstractmethod
    async def create(self, title: str):
        """Create an item. The server assigns id and timestamps."""
        ...

    @abstractmethod
    async def toggle_complete(self, item_id: str):
        """Flip completion of `item_id` and return the server's view of it."""
        ...

    @abstractmethod
    async def delete(self, item_id: str) -> None:
        ...

    @property
    def name(self) -> str:
        return self.config.remote_name
