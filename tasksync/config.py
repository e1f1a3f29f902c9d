"""
Configuration
==============
Client engine and reference server settings, with defaults that can be
overridden from TASKSYNC_* environment variables.

    TASKSYNC_BASE_URL        collection endpoint    http://localhost:8080/api/todos
    TASKSYNC_REMOTE          remote kind            http
    TASKSYNC_POLL_INTERVAL   seconds between polls  5
    TASKSYNC_TIMEOUT         seconds per request    10
    TASKSYNC_HOST            server bind host       127.0.0.1
    TASKSYNC_PORT            server port            8080
    TASKSYNC_MAX_BODY_SIZE   request body limit     10 MiB
    TASKSYNC_ENV             development|production development
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from tasksync.remote.base import RemoteConfig

DEFAULT_BASE_URL = "http://localhost:8080/api/todos"
DEFAULT_MAX_BODY_SIZE = 10 << 20


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


# ─────────────────────────────────────────────────────────────
#  Engine
# ─────────────────────────────────────────────────────────────

@dataclass
class EngineConfig:
    """Settings for one SyncEngine."""

    base_url: str = DEFAULT_BASE_URL
    remote: str = "http"                # Registry name of the remote
    poll_interval: float = 5.0          # Seconds; <= 0 disables polling
    request_timeout: float = 10.0       # Seconds per remote call
    extra: dict[str, Any] = field(default_factory=dict)  # Remote-specific options

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> EngineConfig:
        env = os.environ if env is None else env
        return cls(
            base_url=env.get("TASKSYNC_BASE_URL", "").strip() or DEFAULT_BASE_URL,
            remote=env.get("TASKSYNC_REMOTE", "").strip() or "http",
            poll_interval=_env_float(env, "TASKSYNC_POLL_INTERVAL", 5.0),
            request_timeout=_env_float(env, "TASKSYNC_TIMEOUT", 10.0),
        )

    def remote_config(self) -> RemoteConfig:
        return RemoteConfig(
            remote_name=self.remote,
            base_url=self.base_url,
            timeout=self.request_timeout,
            extra=dict(self.extra),
        )


# ─────────────────────────────────────────────────────────────
#  Reference Server
# ─────────────────────────────────────────────────────────────

@dataclass
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 8080
    max_body_size: int = DEFAULT_MAX_BODY_SIZE
    environment: str = "development"

    @property
    def is_development(self) -> bool:
        return self.environment.lower() in ("", "dev", "development")

    @property
    def is_production(self) -> bool:
        return self.environment.lower() in ("prod", "production")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> ServerConfig:
        env = os.environ if env is None else env
        return cls(
            host=env.get("TASKSYNC_HOST", "").strip() or "127.0.0.1",
            port=_env_int(env, "TASKSYNC_PORT", 8080),
            max_body_size=_env_int(env, "TASKSYNC_MAX_BODY_SIZE", DEFAULT_MAX_BODY_SIZE),
            environment=env.get("TASKSYNC_ENV", "").strip() or "development",
        )
