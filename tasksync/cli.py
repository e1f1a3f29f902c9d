"""
tasksync CLI — Command-Line Interface
======================================
Drive a synchronized list from the terminal.

Usage:
    # Run the reference server
    python -m tasksync.cli serve --port 8080

    # One-shot operations against a server
    python -m tasksync.cli list
    python -m tasksync.cli add /app/db/credential
    python -m tasksync.cli toggle 7
    python -m tasksync.cli rm 7

    # Keep the list on screen, refreshed by polling
    python -m tasksync.cli watch --interval 2

    # List available remote kinds
    python -m tasksync.cli remotes
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from tasksync.config import EngineConfig, ServerConfig
from tasksync.coordinator import MutationOutcome
from tasksync.engine import LoadState, SyncEngine
from tasksync.notifications import Notification, Severity
from tasksync.remote.registry import list_remotes

_GLYPHS = {
    Severity.SUCCESS: "✔",
    Severity.ERROR: "✘",
    Severity.WARNING: "⚠",
    Severity.INFO: "ℹ",
}


# ─────────────────────────────────────────────────────────────
#  Helpers
# ─────────────────────────────────────────────────────────────

def build_engine(args) -> SyncEngine:
    """Create an engine from environment defaults plus CLI overrides."""
    config = EngineConfig.from_env()
    if getattr(args, "url", None):
        config.base_url = args.url
    if getattr(args, "remote", None):
        config.remote = args.remote
    if getattr(args, "interval", None) is not None:
        config.poll_interval = args.interval
    engine = SyncEngine(config=config)
    engine.notifications.subscribe(print_notification)
    return engine


def print_notification(note: Notification):
    print(f"  {_GLYPHS.get(note.severity, '•')} {note.message}")


def print_items(items, as_json: bool = False):
    if as_json:
        print(json.dumps([item.to_dict() for item in items], indent=2))
        return
    if not items:
        print("  (no items)")
        return
    for item in items:
        mark = "✔" if item.is_completed else " "
        done = f"  done {item.completed_at.isoformat()}" if item.completed_at else ""
        print(f"  [{mark}] {item.id:>4}  {item.title}  (created {item.created_at.isoformat()}){done}")


async def _loaded(engine: SyncEngine) -> bool:
    if await engine.load():
        return True
    print(f"✘ Could not load items: {engine.load_error.message}")
    return False


def _report(outcome: MutationOutcome, verb: str) -> int:
    if outcome.ok:
        target = outcome.item.id if outcome.item else outcome.intent.target_id
        print(f"✔ {verb} {target}")
        return 0
    return 1


# ─────────────────────────────────────────────────────────────
#  Commands
# ─────────────────────────────────────────────────────────────

async def cmd_list(args) -> int:
    engine = build_engine(args)
    if not await _loaded(engine):
        return 1
    print_items(engine.items, as_json=args.json)
    return 0


async def cmd_add(args) -> int:
    engine = build_engine(args)
    if not await _loaded(engine):
        return 1
    return _report(await engine.create(args.title), "Created")


async def cmd_toggle(args) -> int:
    engine = build_engine(args)
    if not await _loaded(engine):
        return 1
    outcome = await engine.toggle(args.id)
    if outcome.ok:
        state = "completed" if outcome.item.is_completed else "pending"
        print(f"✔ {outcome.item.id} is now {state}")
        return 0
    return 1


async def cmd_rm(args) -> int:
    engine = build_engine(args)
    if not await _loaded(engine):
        return 1
    return _report(await engine.delete(args.id), "Deleted")


async def cmd_watch(args) -> int:
    engine = build_engine(args)

    def _redraw(items):
        print(f"\n◬ ─── {len(items)} item(s) ───")
        print_items(items)

    engine.store.subscribe(_redraw)
    while not await engine.start():
        print(f"✘ {engine.load_error.message}, retrying in {args.retry}s")
        await asyncio.sleep(args.retry)
    try:
        while engine.load_state is LoadState.READY:
            await asyncio.sleep(3600)
    finally:
        await engine.stop()
    return 0


def cmd_serve(args) -> int:
    try:
        import uvicorn  # noqa: F401
    except ImportError:
        print("✘ uvicorn is required for the reference server.")
        print("  Install it with:  pip install uvicorn fastapi")
        return 1

    from tasksync.server import run_server

    config = ServerConfig.from_env()
    if args.host:
        config.host = args.host
    if args.port:
        config.port = args.port
    run_server(config)
    return 0


def cmd_remotes(args) -> int:
    print("\n  Available remotes:")
    for name in list_remotes():
        print(f"    • {name}")
    return 0


# ─────────────────────────────────────────────────────────────
#  Main
# ─────────────────────────────────────────────────────────────

def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog="tasksync",
        description="tasksync — optimistic, polled list synchronization",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  tasksync serve --port 8080\n"
            "  tasksync add /app/db/credential\n"
            "  tasksync toggle 7\n"
            "  tasksync watch --interval 2\n"
        ),
    )
    parser.add_argument("--url", default=None, help="Collection endpoint URL")
    parser.add_argument("--remote", default=None, help="Remote kind (http/memory)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    p_list = subparsers.add_parser("list", help="Show all items")
    p_list.add_argument("--json", action="store_true", help="Print JSON")

    p_add = subparsers.add_parser("add", help="Create an item")
    p_add.add_argument("title", help="Item title / resource path")

    p_toggle = subparsers.add_parser("toggle", help="Flip completion of an item")
    p_toggle.add_argument("id", help="Item id")

    p_rm = subparsers.add_parser("rm", help="Delete an item")
    p_rm.add_argument("id", help="Item id")

    p_watch = subparsers.add_parser("watch", help="Poll and redraw the list")
    p_watch.add_argument("--interval", type=float, default=None, help="Poll interval in seconds")
    p_watch.add_argument("--retry", type=float, default=5.0, help="Seconds between load retries")

    p_serve = subparsers.add_parser("serve", help="Run the reference server")
    p_serve.add_argument("--host", default=None, help="Bind host")
    p_serve.add_argument("--port", default=None, type=int, help="Port number")

    subparsers.add_parser("remotes", help="List available remote kinds")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    async_commands = {
        "list": cmd_list,
        "add": cmd_add,
        "toggle": cmd_toggle,
        "rm": cmd_rm,
        "watch": cmd_watch,
    }
    sync_commands = {
        "serve": cmd_serve,
        "remotes": cmd_remotes,
    }

    if args.command in async_commands:
        try:
            return asyncio.run(async_commands[args.command](args))
        except KeyboardInterrupt:
            return 130
    if args.command in sync_commands:
        return sync_commands[args.command](args)
    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
