"""
Sync Engine — Presentation Boundary
====================================
Wires one store, scheduler, coordinator and notification sink around a
remote and exposes what the presentation layer needs:

    items                        current committed sequence
    create / toggle / delete     mutation entry points (awaitable outcomes)
    notifications                {severity, message} stream
    scheduler.suspend/resume     poll handles (normally driven by mutations)

The initial full load is the one failure surfaced as a blocking state:
load_state becomes FAILED with load_error set, polling does not start,
and retry_load() tries again.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from tasksync.config import EngineConfig
from tasksync.coordinator import MutationCoordinator, MutationOutcome
from tasksync.notifications import FailurePolicy, NotificationSink
from tasksync.remote.base import BaseRemote, RemoteError, ValidationFailure
from tasksync.remote.registry import get_remote
from tasksync.scheduler import PollScheduler
from tasksync.store import ItemStore

logger = logging.getLogger(__name__)


class LoadState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class SyncEngine:
    """One synchronized list."""

    def __init__(
        self,
        remote: Optional[BaseRemote] = None,
        config: Optional[EngineConfig] = None,
        sink: Optional[NotificationSink] = None,
    ):
        self.config = config or EngineConfig()
        self.remote = remote or get_remote(self.config.remote_config())
        self.notifications = sink or NotificationSink()
        self.store = ItemStore()
        self.scheduler = PollScheduler(
            self.remote, self.store,
            interval=self.config.poll_interval,
            failure_policy=FailurePolicy.SILENT,
            sink=self.notifications,
        )
        self.coordinator = MutationCoordinator(
            self.store, self.remote, self.scheduler, self.notifications,
            failure_policy=FailurePolicy.REPORTED,
        )
        self.load_state = LoadState.IDLE
        self.load_error: Optional[RemoteError] = None

    @property
    def items(self) -> tuple:
        return self.store.list()

    # ── Lifecycle ────────────────────────────────────────────

    async def load(self) -> bool:
        """Fetch the full list once. Returns True on success."""
        self.load_state = LoadState.LOADING
        try:
            items = await self.remote.fetch_all()
        except RemoteError as e:
            return self._load_failed(e)
        try:
            self.store.replace_all(items)
        except ValueError as e:
            return self._load_failed(ValidationFailure(str(e)))
        self.load_state = LoadState.READY
        self.load_error = None
        return True

    def _load_failed(self, error: RemoteError) -> bool:
        self.load_state = LoadState.FAILED
        self.load_error = error
        logger.error("initial load failed: %s", error.message)
        return False

    async def retry_load(self) -> bool:
        """Retry a failed initial load; starts polling once it succeeds."""
        loaded = await self.load()
        if loaded:
            self.scheduler.start()
        return loaded

    async def start(self) -> bool:
        return await self.retry_load()

    async def stop(self):
        await self.scheduler.stop()

    async def __aenter__(self) -> SyncEngine:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.stop()

    # ── Mutations ────────────────────────────────────────────

    async def create(self, title: str) -> MutationOutcome:
        return await self.coordinator.create(title)

    async def toggle(self, item_id: str) -> MutationOutcome:
        return await self.coordinator.toggle(item_id)

    async def delete(self, item_id: str) -> MutationOutcome:
        return await self.coordinator.delete(item_id)
