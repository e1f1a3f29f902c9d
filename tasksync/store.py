"""
Item Store — In-Memory Ordered Collection
==========================================
Holds the committed item sequence. Every operation is a pure function
over the prior sequence that produces a new tuple, so readers never see a
partially applied change and rollback simply restores an older element.

Each mutation primitive returns the UndoToken that inverts it:

    upsert (new id)      → Remove(id)
    upsert / replace /
    patch (existing id)  → Replace(id, prior_item)
    remove               → Insert(item, index)

and rollback(token) consumes exactly one token.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace as dc_replace
from typing import Callable, Iterable, Iterator, Optional, Union

from tasksync.models import Item

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────
#  Undo Tokens
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Insert:
    """Put `item` back at `index` (clamped to the current length)."""

    item: Item
    index: int


@dataclass(frozen=True)
class Remove:
    """Drop the item with `item_id`."""

    item_id: str


@dataclass(frozen=True)
class Replace:
    """Restore `prior` in place of `item_id`. Gone ids stay gone."""

    item_id: str
    prior: Item


UndoToken = Union[Insert, Remove, Replace]

Listener = Callable[[tuple], None]


# ─────────────────────────────────────────────────────────────
#  Pure sequence helpers
# ─────────────────────────────────────────────────────────────

def _index_of(items: tuple, item_id: str) -> int:
    for i, item in enumerate(items):
        if item.id == item_id:
            return i
    return -1


def _insert_at(items: tuple, item: Item, index: int) -> tuple:
    index = max(0, min(index, len(items)))
    return items[:index] + (item,) + items[index:]


def _set_at(items: tuple, index: int, item: Item) -> tuple:
    return items[:index] + (item,) + items[index + 1:]


# ─────────────────────────────────────────────────────────────
#  ItemStore
# ─────────────────────────────────────────────────────────────

class ItemStore:
    """Ordered, id-keyed item sequence with atomic whole-sequence commits."""

    def __init__(self, items: Iterable[Item] = ()):
        self._items: tuple = ()
        self._listeners: list[Listener] = []
        self.replace_all(items)

    # ── Read access ──────────────────────────────────────────

    def list(self) -> tuple:
        """The current committed sequence."""
        return self._items

    def get(self, item_id: str) -> Optional[Item]:
        index = _index_of(self._items, item_id)
        return self._items[index] if index >= 0 else None

    def index_of(self, item_id: str) -> int:
        """Position of `item_id`, or -1."""
        return _index_of(self._items, item_id)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Item]:
        return iter(self._items)

    def __contains__(self, item_id: object) -> bool:
        return isinstance(item_id, str) and _index_of(self._items, item_id) >= 0

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener(items)` after every commit. Returns an unsubscribe."""
        self._listeners.append(listener)

        def _unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ── Mutation primitives ──────────────────────────────────

    def replace_all(self, items: Iterable[Item]) -> None:
        """Swap in a whole new sequence (used by polling and initial load)."""
        new_items = tuple(items)
        seen: set[str] = set()
        for item in new_items:
            if item.id in seen:
                raise ValueError(f"duplicate item id {item.id!r}")
            seen.add(item.id)
        self._commit(new_items)

    def upsert(self, item: Item) -> UndoToken:
        """Replace the item with the same id in place, or append it."""
        index = _index_of(self._items, item.id)
        if index < 0:
            self._commit(self._items + (item,))
            return Remove(item.id)
        prior = self._items[index]
        self._commit(_set_at(self._items, index, item))
        return Replace(item.id, prior)

    def replace(self, item: Item) -> Optional[UndoToken]:
        """Replace an existing item in place; no-op when the id is absent."""
        index = _index_of(self._items, item.id)
        if index < 0:
            return None
        prior = self._items[index]
        self._commit(_set_at(self._items, index, item))
        return Replace(item.id, prior)

    def remove(self, item_id: str) -> Optional[UndoToken]:
        index = _index_of(self._items, item_id)
        if index < 0:
            return None
        removed = self._items[index]
        self._commit(self._items[:index] + self._items[index + 1:])
        return Insert(removed, index)

    def patch(self, item_id: str, **changes) -> Optional[UndoToken]:
        """Apply field changes to one item. Unknown ids are a no-op."""
        index = _index_of(self._items, item_id)
        if index < 0:
            logger.debug("patch on unknown item %s ignored", item_id)
            return None
        prior = self._items[index]
        self._commit(_set_at(self._items, index, dc_replace(prior, **changes)))
        return Replace(item_id, prior)

    def rollback(self, token: Optional[UndoToken]) -> None:
        """Undo one previously applied primitive."""
        if token is None:
            return
        items = self._items
        if isinstance(token, Insert):
            if _index_of(items, token.item.id) >= 0:
                return
            self._commit(_insert_at(items, token.item, token.index))
        elif isinstance(token, Remove):
            index = _index_of(items, token.item_id)
            if index >= 0:
                self._commit(items[:index] + items[index + 1:])
        elif isinstance(token, Replace):
            index = _index_of(items, token.item_id)
            if index >= 0:
                self._commit(_set_at(items, index, token.prior))
        else:
            raise TypeError(f"not an undo token: {token!r}")

    # ── Internals ────────────────────────────────────────────

    def _commit(self, items: tuple) -> None:
        self._items = items
        for listener in list(self._listeners):
            listener(items)
