"""
tasksync Test Suite — Repository and Reference Server
======================================================
Tests for the authoritative repository and the FastAPI server's envelope,
status codes and webhook handling. The server's answers are fed through
the client's wire schemas to check both sides agree.

Usage:
    python -m pytest tests/test_server.py -v
    python tests/test_server.py
"""
import sys
import os
import json
import unittest
from datetime import datetime, timedelta, timezone

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi.testclient import TestClient

from tasksync.config import ServerConfig
from tasksync.remote.schemas import ItemEnvelope, ItemListEnvelope
from tasksync.repository import RepositoryError, TodoRepository
from tasksync.server import create_app


class FixedClock:
    """Deterministic clock that advances one minute per reading."""

    def __init__(self):
        self.now = datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)

    def __call__(self):
        self.now += timedelta(minutes=1)
        return self.now


# ─────────────────────────────────────────────
#  Repository Tests
# ─────────────────────────────────────────────

class TestTodoRepository(unittest.TestCase):

    def setUp(self):
        self.repo = TodoRepository(clock=FixedClock())

    def test_ids_are_never_reused(self):
        first = self.repo.create("/a")
        self.repo.delete(first.id)
        second = self.repo.create("/b")
        self.assertEqual((first.id, second.id), (1, 2))

    def test_create_trims_and_rejects_empty(self):
        self.assertEqual(self.repo.create("  /a  ").secret_path, "/a")
        with self.assertRaises(RepositoryError) as ctx:
            self.repo.create("   ")
        self.assertEqual(ctx.exception.status_code, 400)

    def test_duplicate_path_conflicts(self):
        self.repo.create("/a")
        with self.assertRaises(RepositoryError) as ctx:
            self.repo.create("/a")
        self.assertEqual(ctx.exception.status_code, 409)

    def test_toggle_roundtrip(self):
        row = self.repo.create("/a")
        done = self.repo.toggle_complete(row.id)
        self.assertTrue(done.is_completed)
        self.assertIsNotNone(done.completed_at)
        undone = self.repo.toggle_complete(row.id)
        self.assertFalse(undone.is_completed)
        self.assertIsNone(undone.completed_at)

    def test_complete_is_idempotent(self):
        row = self.repo.create("/a")
        first = self.repo.complete(row.id)
        second = self.repo.complete(row.id)
        self.assertEqual(first.completed_at, second.completed_at)

    def test_missing_rows(self):
        for call in (self.repo.toggle_complete, self.repo.complete, self.repo.delete, self.repo.get):
            with self.assertRaises(RepositoryError) as ctx:
                call(42)
            self.assertEqual(ctx.exception.status_code, 404)

    def test_webhook_upsert_resets_existing(self):
        row = self.repo.create("/a")
        self.repo.toggle_complete(row.id)
        reset = self.repo.upsert_from_webhook("/a")
        self.assertEqual(reset.id, row.id)
        self.assertFalse(reset.is_completed)
        self.assertEqual(len(self.repo.list()), 1)

    def test_webhook_upsert_creates_missing(self):
        row = self.repo.upsert_from_webhook("/new")
        self.assertEqual(self.repo.get(row.id).secret_path, "/new")

    def test_wire_shape(self):
        wire = self.repo.create("/a").to_wire()
        self.assertEqual(set(wire), {"id", "secretPath", "isCompleted", "createdAt", "completedAt"})
        self.assertEqual(wire["createdAt"], "2024-01-01T08:01:00Z")


# ─────────────────────────────────────────────
#  Server Tests
# ─────────────────────────────────────────────

class TestServer(unittest.TestCase):

    def setUp(self):
        self.repo = TodoRepository(clock=FixedClock())
        self.client = TestClient(create_app(self.repo))

    def _create(self, path="/app/db/credential"):
        return self.client.post("/api/todos", json={"secretPath": path})

    def test_list_empty(self):
        resp = self.client.get("/api/todos")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"data": []})

    def test_create_matches_client_schema(self):
        resp = self._create()
        self.assertEqual(resp.status_code, 200)
        item = ItemEnvelope.model_validate(resp.json()).data.to_item()
        self.assertEqual(item.id, "1")
        self.assertEqual(item.title, "/app/db/credential")
        self.assertFalse(item.is_completed)

    def test_list_matches_client_schema(self):
        self._create("/a")
        self._create("/b")
        envelope = ItemListEnvelope.model_validate(self.client.get("/api/todos").json())
        self.assertEqual([dto.secretPath for dto in envelope.data], ["/a", "/b"])

    def test_duplicate_create_is_conflict(self):
        self._create()
        resp = self._create()
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json(), {"error": "secretPath already exists"})

    def test_blank_path_is_bad_request(self):
        resp = self._create("  ")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "secretPath is required"})

    def test_malformed_body_is_bad_request(self):
        resp = self.client.post("/api/todos", content=b"{nope", headers={"Content-Type": "application/json"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "invalid request body"})

    def test_patch_toggles(self):
        self._create()
        done = self.client.patch("/api/todos/1").json()["data"]
        self.assertTrue(done["isCompleted"])
        self.assertIsNotNone(done["completedAt"])
        undone = self.client.patch("/api/todos/1").json()["data"]
        self.assertFalse(undone["isCompleted"])
        self.assertIsNone(undone["completedAt"])

    def test_complete_endpoint(self):
        self._create()
        resp = self.client.post("/api/todos/1/complete")
        self.assertTrue(resp.json()["data"]["isCompleted"])

    def test_delete(self):
        self._create()
        resp = self.client.delete("/api/todos/1")
        self.assertEqual(resp.json(), {"data": True})
        again = self.client.delete("/api/todos/1")
        self.assertEqual(again.status_code, 404)
        self.assertEqual(again.json(), {"error": "todo not found"})

    def test_invalid_id(self):
        resp = self.client.patch("/api/todos/abc")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "invalid id"})

    def test_signed_and_underscored_ids_are_invalid(self):
        self._create()
        for raw in ("+1", "-1", "0_1", "1_0"):
            resp = self.client.patch(f"/api/todos/{raw}")
            self.assertEqual(resp.status_code, 400, raw)
            self.assertEqual(resp.json(), {"error": "invalid id"})
        self.assertFalse(self.repo.get(1).is_completed)

    def test_unknown_route_uses_error_envelope(self):
        resp = self.client.get("/api/nothing")
        self.assertEqual(resp.status_code, 404)
        self.assertIn("error", resp.json())

    def test_webhook_events(self):
        self.assertEqual(
            self.client.post("/api/todos/webhook", json={"event": "test"}).json(), {"data": "ok"},
        )
        self.assertEqual(
            self.client.post("/api/todos/webhook", json={"event": "secrets.deleted"}).json(),
            {"data": "ignored"},
        )
        resp = self.client.post("/api/todos/webhook", json={
            "event": "secrets.modified",
            "project": {"secretPath": "/app/db/password", "projectName": "demo"},
        })
        self.assertEqual(resp.json()["data"]["secretPath"], "/app/db/password")

    def test_webhook_requires_path(self):
        resp = self.client.post("/api/todos/webhook", json={"event": "secrets.modified"})
        self.assertEqual(resp.status_code, 400)

    def test_body_size_limit(self):
        client = TestClient(create_app(self.repo, ServerConfig(max_body_size=16)))
        resp = client.post("/api/todos", json={"secretPath": "/" + "x" * 64})
        self.assertEqual(resp.status_code, 413)
        self.assertEqual(resp.json(), {"error": "request body too large"})

    def test_body_size_limit_counts_chunked_bytes(self):
        client = TestClient(create_app(self.repo, ServerConfig(max_body_size=64)))
        body = json.dumps({"secretPath": "/" + "x" * 500}).encode("utf-8")

        def chunks():
            for start in range(0, len(body), 50):
                yield body[start:start + 50]

        resp = client.post("/api/todos", content=chunks(), headers={"Content-Type": "application/json"})
        self.assertEqual(resp.status_code, 413)
        self.assertEqual(resp.json(), {"error": "request body too large"})
        self.assertEqual(self.repo.list(), [])

    def test_small_chunked_body_is_accepted(self):
        client = TestClient(create_app(self.repo, ServerConfig(max_body_size=64)))
        resp = client.post("/api/todos", content=iter([b'{"secretPath": ', b'"/a"}']),
                           headers={"Content-Type": "application/json"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["data"]["secretPath"], "/a")


if __name__ == "__main__":
    unittest.main(verbosity=2)
