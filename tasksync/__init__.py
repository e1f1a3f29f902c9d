"""
tasksync — Optimistic List Synchronization Engine
==================================================
Keeps a client-side item list in step with an authoritative server under
two competing update paths: background polling and optimistic user
mutations.

Architecture:
    Item Store           — Immutable ordered sequence + undo tokens
    Remote Client        — Typed boundary to the server (HTTP, in-memory)
    Mutation Coordinator — Optimistic apply, commit or roll back
    Poll Scheduler       — Periodic refresh, suspended during mutations
    Notification Sink    — User-facing failure reports
"""

__version__ = "0.1.0"

from tasksync.models import Item, ItemStatus
from tasksync.store import ItemStore, Insert, Remove, Replace
from tasksync.notifications import NotificationSink, Notification, Severity, FailurePolicy
from tasksync.scheduler import PollScheduler, PollState
from tasksync.coordinator import MutationCoordinator, MutationOutcome, MutationState
from tasksync.engine import SyncEngine, LoadState
from tasksync.config import EngineConfig

__all__ = [
    "Item", "ItemStatus",
    "ItemStore", "Insert", "Remove", "Replace",
    "NotificationSink", "Notification", "Severity", "FailurePolicy",
    "PollScheduler", "PollState",
    "MutationCoordinator", "MutationOutcome", "MutationState",
    "SyncEngine", "LoadState", "EngineConfig",
]
