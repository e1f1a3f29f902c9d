"""
Mutation Coordinator — Optimistic Updates with Rollback
========================================================
Applies a user's change to the store immediately, sends it to the remote,
then commits the server's answer or rolls the change back.

Per mutation:
    IDLE → APPLYING → AWAITING_SERVER → COMMITTED | ROLLED_BACK

Every mutation runs inside a scheduler hold, so polling is suspended from
before the optimistic change until the remote call has settled. Remote
failures are never fatal: the store is restored from the mutation's
UndoToken and the failure is reported once through the sink.

    toggle(id)   flip locally → toggle_complete → replace with server item
    create(t)    create → append server item (nothing optimistic to undo)
    delete(id)   remove locally → delete → done; on failure reinsert at
                 the original index
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from tasksync.models import Item, today_utc
from tasksync.notifications import FailurePolicy, NotificationSink, handle_failure
from tasksync.remote.base import BaseRemote, RemoteError
from tasksync.scheduler import PollScheduler
from tasksync.store import ItemStore, UndoToken

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────
#  Data Structures
# ─────────────────────────────────────────────────────────────

class MutationKind(str, Enum):
    CREATE = "create"
    TOGGLE = "toggle"
    DELETE = "delete"


class MutationState(str, Enum):
    IDLE = "idle"
    APPLYING = "applying"
    AWAITING_SERVER = "awaiting_server"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass
class MutationIntent:
    """One in-flight operation and the token that undoes its local effect."""

    kind: MutationKind
    target_id: Optional[str] = None
    title: str = ""
    undo: Optional[UndoToken] = None
    state: MutationState = MutationState.IDLE


@dataclass
class MutationOutcome:
    """Completion signal returned to the caller of a mutation."""

    intent: MutationIntent
    item: Optional[Item] = None        # Server-confirmed item (create/toggle)
    error: Optional[RemoteError] = None

    @property
    def ok(self) -> bool:
        return self.intent.state is MutationState.COMMITTED

    @property
    def state(self) -> MutationState:
        return self.intent.state


# ─────────────────────────────────────────────────────────────
#  Coordinator
# ─────────────────────────────────────────────────────────────

class MutationCoordinator:
    """Runs create/toggle/delete against a store, remote and scheduler."""

    def __init__(
        self,
        store: ItemStore,
        remote: BaseRemote,
        scheduler: PollScheduler,
        sink: NotificationSink,
        failure_policy: FailurePolicy = FailurePolicy.REPORTED,
    ):
        self.store = store
        self.remote = remote
        self.scheduler = scheduler
        self.sink = sink
        self.failure_policy = failure_policy
        self._pending: list[MutationIntent] = []

    @property
    def pending(self) -> list[MutationIntent]:
        """Intents currently waiting on the remote."""
        return list(self._pending)

    # ── Entry points ─────────────────────────────────────────

    async def toggle(self, item_id: str) -> MutationOutcome:
        intent = MutationIntent(kind=MutationKind.TOGGLE, target_id=item_id)
        current = self.store.get(item_id)
        if current is None:
            return self._missing(intent)

        with self.scheduler.hold():
            intent.state = MutationState.APPLYING
            intent.undo = self.store.replace(current.toggled(today_utc()))
            try:
                confirmed = await self._await_server(intent, self.remote.toggle_complete(item_id))
            except RemoteError as e:
                return self._roll_back(intent, e)
            self.store.replace(confirmed)
            return self._commit(intent, confirmed)

    async def create(self, title: str) -> MutationOutcome:
        title = (title or "").strip()
        intent = MutationIntent(kind=MutationKind.CREATE, title=title)
        if not title:
            self.sink.warning("Title is required")
            return MutationOutcome(intent)

        with self.scheduler.hold():
            intent.state = MutationState.APPLYING
            try:
                created = await self._await_server(intent, self.remote.create(title))
            except RemoteError as e:
                return self._roll_back(intent, e)
            intent.undo = self.store.upsert(created)
            return self._commit(intent, created)

    async def delete(self, item_id: str) -> MutationOutcome:
        intent = MutationIntent(kind=MutationKind.DELETE, target_id=item_id)
        if item_id not in self.store:
            return self._missing(intent)

        with self.scheduler.hold():
            intent.state = MutationState.APPLYING
            intent.undo = self.store.remove(item_id)
            try:
                await self._await_server(intent, self.remote.delete(item_id))
            except RemoteError as e:
                return self._roll_back(intent, e)
            return self._commit(intent, None)

    # ── State transitions ────────────────────────────────────

    async def _await_server(self, intent: MutationIntent, call):
        intent.state = MutationState.AWAITING_SERVER
        self._pending.append(intent)
        try:
            return await call
        except RemoteError:
            raise
        except BaseException:
            # Cancellation or a bug: restore local state, then propagate
            self.store.rollback(intent.undo)
            intent.state = MutationState.ROLLED_BACK
            raise
        finally:
            self._pending.remove(intent)

    def _commit(self, intent: MutationIntent, item: Optional[Item]) -> MutationOutcome:
        intent.state = MutationState.COMMITTED
        logger.debug("%s %s committed", intent.kind.value, intent.target_id or intent.title)
        return MutationOutcome(intent, item=item)

    def _roll_back(self, intent: MutationIntent, error: RemoteError) -> MutationOutcome:
        self.store.rollback(intent.undo)
        intent.state = MutationState.ROLLED_BACK
        handle_failure(
            self.failure_policy, error, self.sink,
            context=f"{intent.kind.value} {intent.target_id or intent.title!r} failed",
        )
        return MutationOutcome(intent, error=error)

    def _missing(self, intent: MutationIntent) -> MutationOutcome:
        logger.warning("%s on unknown item %s ignored", intent.kind.value, intent.target_id)
        self.sink.warning(f"Item {intent.target_id} no longer exists")
        return MutationOutcome(intent)
