"""
In-Memory Remote — In-Process Source of Truth
==============================================
Serves the remote contract from a TodoRepository living in the same
process. Records still pass through the wire DTO so both remotes decode
identically. Useful for demos and for exercising the engine without a
server.

Options (RemoteConfig.extra):
    repository  — share an existing TodoRepository
    latency     — seconds to sleep before each call (simulated network)
"""

from __future__ import annotations

import asyncio

from tasksync.models import Item
from tasksync.remote.base import ApplicationFailure, BaseRemote, RemoteConfig
from tasksync.remote.schemas import TodoItemDTO
from tasksync.repository import RepositoryError, TodoRecord, TodoRepository


class InMemoryRemote(BaseRemote):
    """Remote that calls a TodoRepository directly."""

    def __init__(self, config: RemoteConfig):
        super().__init__(config)
        self.repository: TodoRepository = config.extra.get("repository") or TodoRepository()
        self.latency = float(config.extra.get("latency", 0.0))

    async def fetch_all(self) -> list[Item]:
        await self._wait()
        return [self._to_item(row) for row in self.repository.list()]

    async def create(self, title: str) -> Item:
        await self._wait()
        return self._to_item(self._call(self.repository.create, title))

    async def toggle_complete(self, item_id: str) -> Item:
        await self._wait()
        return self._to_item(self._call(self.repository.toggle_complete, self._parse_id(item_id)))

    async def delete(self, item_id: str) -> None:
        await self._wait()
        self._call(self.repository.delete, self._parse_id(item_id))

    # ── Helpers ──────────────────────────────────────────────

    async def _wait(self):
        if self.latency > 0:
            await asyncio.sleep(self.latency)

    @staticmethod
    def _call(fn, *args):
        try:
            return fn(*args)
        except RepositoryError as e:
            raise ApplicationFailure(e.status_code, e.message) from None

    @staticmethod
    def _parse_id(item_id: str) -> int:
        text = str(item_id).strip()
        if not (text.isascii() and text.isdigit()):
            raise ApplicationFailure(400, "invalid id")
        return int(text)

    @staticmethod
    def _to_item(row: TodoRecord) -> Item:
        return TodoItemDTO.model_validate(row.to_wire()).to_item()
