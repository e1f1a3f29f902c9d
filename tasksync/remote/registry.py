"""
Remote Registry — Discover, Register, and Instantiate Remotes
==============================================================
Maps remote names to their implementation classes. Built-in remotes are
imported lazily on first use.
"""

from __future__ import annotations

from typing import Type

from tasksync.remote.base import BaseRemote, RemoteConfig

# ─────────────────────────────────────────────────────────────
#  Registry
# ─────────────────────────────────────────────────────────────

_REGISTRY: dict[str, Type[BaseRemote]] = {}

_BUILTINS = ("http", "memory")


def register_remote(name: str, remote_class: Type[BaseRemote]):
    """Register a remote class under a name."""
    _REGISTRY[name.lower()] = remote_class


def get_remote(config: RemoteConfig) -> BaseRemote:
    """Instantiate a remote from config.

    Raises:
        ValueError: If no remote is registered under config.remote_name.
    """
    name = config.remote_name.lower()

    if name not in _REGISTRY:
        _lazy_import(name)

    if name not in _REGISTRY:
        available = list_remotes() or ["(none registered)"]
        raise ValueError(f"Unknown remote '{name}'. Available: {available}.")

    return _REGISTRY[name](config)


def list_remotes() -> list[str]:
    """List all registered remote names."""
    for name in _BUILTINS:
        if name not in _REGISTRY:
            _lazy_import(name)
    return sorted(_REGISTRY.keys())


def _lazy_import(name: str):
    if name == "http":
        from tasksync.remote.http_remote import HttpRemote
        register_remote("http", HttpRemote)
    elif name == "memory":
        from tasksync.remote.memory_remote import InMemoryRemote
        register_remote("memory", InMemoryRemote)
