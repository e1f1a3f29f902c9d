"""
Reference Server — Authoritative Collection over HTTP
======================================================
FastAPI application serving a TodoRepository with the envelope the client
expects. Every response is {"data": ...} or {"error": ...}.

Launch:
    python -m tasksync.server
    python -m tasksync.cli serve --port 8080

Endpoints (prefix /api/todos):
    GET    ""               → list
    POST   ""               → create            {"secretPath": "/app/db/password"}
    PATCH  "/{id}"          → toggle completion
    POST   "/{id}/complete" → mark completed
    DELETE "/{id}"          → delete
    POST   "/webhook"       → upsert from a secrets-manager event
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from tasksync.config import ServerConfig
from tasksync.remote.schemas import CreateTodoRequest
from tasksync.repository import RepositoryError, TodoRepository

logger = logging.getLogger(__name__)

EVENT_SECRETS_MODIFIED = "secrets.modified"
EVENT_TEST = "test"

BODY_TOO_LARGE = "request body too large"


# ─────────────────────────────────────────────────────────────
#  Request Models
# ─────────────────────────────────────────────────────────────

class WebhookProject(BaseModel):
    secretPath: str = ""
    projectId: str = ""
    projectName: str = ""
    environment: str = ""
    secretName: str = ""
    reminderNote: str = ""


class WebhookPayload(BaseModel):
    event: str
    project: WebhookProject = Field(default_factory=WebhookProject)
    timestamp: int = 0


# ─────────────────────────────────────────────────────────────
#  Envelope helpers
# ─────────────────────────────────────────────────────────────

def respond_data(data: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse({"data": data}, status_code=status_code)


def respond_error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def _parse_id(raw: str) -> int:
    text = raw.strip()
    if not (text.isascii() and text.isdigit()):
        raise RepositoryError(400, "invalid id")
    return int(text)


class BodySizeLimitMiddleware:
    """Reject request bodies over `max_body_size` bytes with 413.

    The declared Content-Length is checked up front; bytes actually
    streamed are counted too, so chunked or mislabelled bodies are capped.
    """

    def __init__(self, app, max_body_size: int):
        self.app = app
        self.max_body_size = max_body_size

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        length = dict(scope.get("headers") or ()).get(b"content-length", b"")
        if length.isdigit() and int(length) > self.max_body_size:
            await respond_error(413, BODY_TOO_LARGE)(scope, receive, send)
            return

        received = 0

        async def limited_receive():
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_size:
                    raise HTTPException(status_code=413, detail=BODY_TOO_LARGE)
            return message

        await self.app(scope, limited_receive, send)


# ─────────────────────────────────────────────────────────────
#  Routes
# ─────────────────────────────────────────────────────────────

def _build_router(repo: TodoRepository) -> APIRouter:
    router = APIRouter(prefix="/api/todos")

    @router.get("")
    async def list_todos():
        return respond_data([row.to_wire() for row in repo.list()])

    @router.post("")
    async def create_todo(req: CreateTodoRequest):
        return respond_data(repo.create(req.secretPath).to_wire())

    # Registered before "/{todo_id}" routes so the literal path wins
    @router.post("/webhook")
    async def webhook(payload: WebhookPayload):
        if payload.event not in (EVENT_SECRETS_MODIFIED, EVENT_TEST):
            return respond_data("ignored")
        if payload.event == EVENT_TEST:
            return respond_data("ok")
        row = repo.upsert_from_webhook(payload.project.secretPath)
        logger.info("webhook upserted %s", row.secret_path)
        return respond_data(row.to_wire())

    @router.patch("/{todo_id}")
    async def toggle_todo(todo_id: str):
        return respond_data(repo.toggle_complete(_parse_id(todo_id)).to_wire())

    @router.post("/{todo_id}/complete")
    async def complete_todo(todo_id: str):
        return respond_data(repo.complete(_parse_id(todo_id)).to_wire())

    @router.delete("/{todo_id}")
    async def delete_todo(todo_id: str):
        repo.delete(_parse_id(todo_id))
        return respond_data(True)

    return router


# ─────────────────────────────────────────────────────────────
#  App Setup
# ─────────────────────────────────────────────────────────────

def create_app(
    repo: Optional[TodoRepository] = None,
    config: Optional[ServerConfig] = None,
) -> FastAPI:
    repo = repo or TodoRepository()
    config = config or ServerConfig()

    app = FastAPI(title="tasksync reference server", version="0.1.0")
    app.state.repo = repo
    app.state.config = config

    app.add_middleware(BodySizeLimitMiddleware, max_body_size=config.max_body_size)

    @app.exception_handler(RepositoryError)
    async def repository_error(request: Request, exc: RepositoryError):
        return respond_error(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError):
        return respond_error(400, "invalid request body")

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return respond_error(exc.status_code, str(exc.detail))

    app.include_router(_build_router(repo))
    return app


def run_server(config: Optional[ServerConfig] = None, repo: Optional[TodoRepository] = None):
    """Serve the reference collection until interrupted."""
    import uvicorn

    config = config or ServerConfig.from_env()
    app = create_app(repo, config)

    print(f"\n◬ ─── tasksync reference server ───")
    print(f"  http://{config.host}:{config.port}/api/todos")
    print(f"  Press Ctrl+C to stop\n")

    uvicorn.run(
        app, host=config.host, port=config.port,
        log_level="info" if config.is_development else "warning",
    )


if __name__ == "__main__":
    run_server()
