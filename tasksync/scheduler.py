"""
Poll Scheduler — Background Refresh
====================================
Periodically fetches the full collection and replaces the store contents,
unless a mutation is suspending polling or the previous tick is still
outstanding.

State is owned by one PollScheduler instance, so independent lists run
independent schedulers:

    in_flight        a tick's fetch is outstanding
    manual_suspend   suspend()/resume() handle (idempotent)
    holds            reference count of open mutation windows (hold())
    epoch            bumped on every suspension

Stale results:
    A tick remembers the epoch its fetch started in. If the scheduler is
    suspended when the fetch resolves, or a suspension happened while it
    was outstanding, the result is discarded. A tick that committed before
    the suspension stays committed; the optimistic edit lands on top.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from typing import Iterator, Optional

from tasksync.notifications import FailurePolicy, NotificationSink, handle_failure
from tasksync.remote.base import BaseRemote, RemoteError, ValidationFailure
from tasksync.store import ItemStore

logger = logging.getLogger(__name__)


@dataclass
class PollState:
    in_flight: bool = False
    manual_suspend: bool = False
    holds: int = 0
    epoch: int = 0

    @property
    def suspended(self) -> bool:
        return self.manual_suspend or self.holds > 0


class PollScheduler:
    """Recurring fetch_all → replace_all with overlap and suspend guards."""

    def __init__(
        self,
        remote: BaseRemote,
        store: ItemStore,
        interval: float = 5.0,
        failure_policy: FailurePolicy = FailurePolicy.SILENT,
        sink: Optional[NotificationSink] = None,
    ):
        self.remote = remote
        self.store = store
        self.interval = interval
        self.failure_policy = failure_policy
        self.sink = sink
        self.state = PollState()

        self.ticks_run = 0
        self.ticks_skipped = 0
        self.results_discarded = 0
        self.last_error: Optional[RemoteError] = None

        self._loop_task: Optional[asyncio.Task] = None
        self._tick_tasks: set[asyncio.Task] = set()

    # ── Suspension ───────────────────────────────────────────

    @property
    def suspended(self) -> bool:
        return self.state.suspended

    @property
    def in_flight(self) -> bool:
        return self.state.in_flight

    def suspend(self):
        """Skip future ticks until resume(). Idempotent."""
        if not self.state.manual_suspend:
            self.state.manual_suspend = True
            self.state.epoch += 1

    def resume(self):
        """Undo suspend(). Idempotent; open holds keep polling suspended."""
        self.state.manual_suspend = False

    @contextlib.contextmanager
    def hold(self) -> Iterator[None]:
        """Suspend polling for the duration of the block.

        Holds nest: polling resumes only when the last open hold exits,
        even if the block raises or is cancelled.
        """
        self.state.holds += 1
        self.state.epoch += 1
        try:
            yield
        finally:
            self.state.holds -= 1

    # ── Ticking ──────────────────────────────────────────────

    async def tick(self) -> bool:
        """Run one refresh. Returns True when the store was replaced."""
        if self.state.suspended or self.state.in_flight:
            self.ticks_skipped += 1
            logger.debug(
                "poll tick skipped (suspended=%s, in_flight=%s)",
                self.state.suspended, self.state.in_flight,
            )
            return False

        self.state.in_flight = True
        self.ticks_run += 1
        started_epoch = self.state.epoch
        try:
            items = await self.remote.fetch_all()
        except RemoteError as e:
            self.last_error = e
            handle_failure(self.failure_policy, e, self.sink, context="poll failed")
            return False
        finally:
            self.state.in_flight = False

        if self.state.suspended or self.state.epoch != started_epoch:
            self.results_discarded += 1
            logger.debug("poll result discarded: a mutation window opened during the fetch")
            return False

        try:
            self.store.replace_all(items)
        except ValueError as e:
            self.last_error = ValidationFailure(str(e))
            handle_failure(self.failure_policy, self.last_error, self.sink, context="poll failed")
            return False
        self.last_error = None
        return True

    # ── Timer loop ───────────────────────────────────────────

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    def start(self):
        """Begin ticking every `interval` seconds on the running loop."""
        if self.running:
            return
        if self.interval <= 0:
            logger.info("polling disabled (interval=%s)", self.interval)
            return
        self._loop_task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self):
        """Stop the timer and wait for outstanding ticks to settle."""
        task, self._loop_task = self._loop_task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if self._tick_tasks:
            await asyncio.gather(*self._tick_tasks, return_exceptions=True)

    async def _run(self):
        while True:
            await asyncio.sleep(self.interval)
            # Not awaited: a slow fetch must not delay the next tick's guard check
            task = asyncio.create_task(self._guarded_tick())
            self._tick_tasks.add(task)
            task.add_done_callback(self._tick_tasks.discard)

    async def _guarded_tick(self):
        try:
            await self.tick()
        except Exception:
            logger.exception("unexpected error during poll tick")
