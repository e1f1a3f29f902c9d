"""
HTTP Remote — REST Collection Endpoint
=======================================
Talks to the collection endpoint with urllib (no HTTP client dependency).
Blocking I/O runs in a worker thread so the engine's event loop keeps
ticking while a request is outstanding.

Routes (relative to base_url):
    GET    ""       → {"data": [TodoItem, ...]}
    POST   ""       → {"data": TodoItem}       body {"secretPath": title}
    PATCH  "/{id}"  → {"data": TodoItem}       flips completion
    DELETE "/{id}"  → {"data": true}
"""

from __future__ import annotations

import asyncio
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Optional

from pydantic import BaseModel, ValidationError

from tasksync.models import Item
from tasksync.remote.base import (
    ApplicationFailure, BaseRemote, RemoteConfig, TransportFailure, ValidationFailure,
)
from tasksync.remote.schemas import (
    AckEnvelope, CreateTodoRequest, ErrorEnvelope, ItemEnvelope, ItemListEnvelope,
)

logger = logging.getLogger(__name__)


class HttpRemote(BaseRemote):
    """Remote backed by the JSON-over-HTTP collection endpoint."""

    DEFAULT_BASE_URL = "http://localhost:8080/api/todos"

    def __init__(self, config: RemoteConfig):
        super().__init__(config)
        self.base_url = (config.base_url or self.DEFAULT_BASE_URL).rstrip("/")

    # ── Contract ─────────────────────────────────────────────

    async def fetch_all(self) -> list[Item]:
        body = await asyncio.to_thread(self._request, "GET", "")
        envelope = self._decode(ItemListEnvelope, body)
        return [dto.to_item() for dto in envelope.data]

    async def create(self, title: str) -> Item:
        payload = CreateTodoRequest(secretPath=title).model_dump()
        body = await asyncio.to_thread(self._request, "POST", "", payload)
        return self._decode(ItemEnvelope, body).data.to_item()

    async def toggle_complete(self, item_id: str) -> Item:
        body = await asyncio.to_thread(self._request, "PATCH", self._item_path(item_id))
        return self._decode(ItemEnvelope, body).data.to_item()

    async def delete(self, item_id: str) -> None:
        body = await asyncio.to_thread(self._request, "DELETE", self._item_path(item_id))
        self._decode(AckEnvelope, body)

    # ── Exchange ─────────────────────────────────────────────

    @staticmethod
    def _item_path(item_id: str) -> str:
        return "/" + urllib.parse.quote(str(item_id), safe="")

    def _request(self, method: str, endpoint: str, payload: Optional[dict] = None) -> Any:
        """Perform one exchange and return the parsed JSON body."""
        url = f"{self.base_url}{endpoint}"
        data = json.dumps(payload).encode("utf-8") if payload is not None else None
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        headers.update(self.config.headers)
        req = urllib.request.Request(url, data=data, headers=headers, method=method)

        logger.debug("%s %s", method, url)
        try:
            with urllib.request.urlopen(req, timeout=self.config.timeout) as resp:
                raw = resp.read()
        except urllib.error.HTTPError as e:
            raise self._application_failure(e.code, e.reason, e.read()) from None
        except urllib.error.URLError as e:
            raise TransportFailure(f"Cannot reach {url}: {e.reason}") from e
        except OSError as e:
            # Socket timeouts and resets surface here
            raise TransportFailure(f"Request to {url} failed: {e}") from e

        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise TransportFailure("malformed response body") from e

    @staticmethod
    def _application_failure(status: int, reason: Any, raw: bytes) -> ApplicationFailure:
        try:
            envelope = ErrorEnvelope.model_validate(json.loads(raw.decode("utf-8")))
            message = envelope.error or "Unknown error"
        except (UnicodeDecodeError, json.JSONDecodeError, ValidationError):
            message = f"HTTP {status} {reason or ''}".strip()
        return ApplicationFailure(status, message)

    @staticmethod
    def _decode(model: type[BaseModel], body: Any):
        try:
            return model.model_validate(body)
        except ValidationError as e:
            first = e.errors()[0] if e.errors() else {}
            where = ".".join(str(part) for part in first.get("loc", ()))
            detail = first.get("msg", "invalid value")
            raise ValidationFailure(
                f"Unexpected response shape at '{where}': {detail}" if where
                else f"Unexpected response shape: {detail}"
            ) from None
