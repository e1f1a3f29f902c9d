"""
Remote Client Layer
====================
Typed request/response boundary to the authoritative item collection.
"""

from tasksync.remote.base import (
    ApplicationFailure, BaseRemote, FailureKind, RemoteConfig, RemoteError,
    TransportFailure, ValidationFailure,
)
from tasksync.remote.registry import get_remote, list_remotes, register_remote

__all__ = [
    "BaseRemote", "RemoteConfig", "RemoteError", "FailureKind",
    "TransportFailure", "ValidationFailure", "ApplicationFailure",
    "get_remote", "list_remotes", "register_remote",
]
