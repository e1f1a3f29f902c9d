"""
tasksync Test Suite — Item Model and Item Store
================================================
Tests for the Item invariant, undo tokens and the pure store primitives.

Usage:
    python -m pytest tests/test_models_store.py -v
    python tests/test_models_store.py
"""
import sys
import os
import unittest
from datetime import date

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from tasksync.models import Item, ItemStatus, parse_date
from tasksync.store import ItemStore, Insert, Remove, Replace


def _item(item_id, status=ItemStatus.PENDING, title=None):
    completed_at = date(2024, 1, 5) if status is ItemStatus.COMPLETED else None
    return Item(
        id=item_id,
        title=title or f"/app/{item_id}",
        status=status,
        created_at=date(2024, 1, 1),
        completed_at=completed_at,
    )


# ─────────────────────────────────────────────
#  Item Tests
# ─────────────────────────────────────────────

class TestItem(unittest.TestCase):

    def test_completed_requires_completed_at(self):
        with self.assertRaises(ValueError):
            Item(id="1", title="/a", status=ItemStatus.COMPLETED, created_at=date(2024, 1, 1))

    def test_pending_rejects_completed_at(self):
        with self.assertRaises(ValueError):
            Item(id="1", title="/a", status=ItemStatus.PENDING,
                 created_at=date(2024, 1, 1), completed_at=date(2024, 1, 2))

    def test_status_string_coerced(self):
        item = Item(id="1", title="/a", status="pending", created_at=date(2024, 1, 1))
        self.assertIs(item.status, ItemStatus.PENDING)

    def test_toggle_pending_sets_completed_at(self):
        toggled = _item("1").toggled(date(2024, 3, 3))
        self.assertIs(toggled.status, ItemStatus.COMPLETED)
        self.assertEqual(toggled.completed_at, date(2024, 3, 3))

    def test_toggle_completed_clears_completed_at(self):
        toggled = _item("1", ItemStatus.COMPLETED).toggled()
        self.assertIs(toggled.status, ItemStatus.PENDING)
        self.assertIsNone(toggled.completed_at)

    def test_toggle_does_not_mutate_original(self):
        original = _item("1")
        original.toggled()
        self.assertIs(original.status, ItemStatus.PENDING)

    def test_dict_roundtrip(self):
        item = _item("9", ItemStatus.COMPLETED)
        self.assertEqual(Item.from_dict(item.to_dict()), item)

    def test_parse_date_truncates_timestamp(self):
        self.assertEqual(parse_date("2024-01-01T23:59:59Z"), date(2024, 1, 1))
        self.assertEqual(parse_date("2024-01-01"), date(2024, 1, 1))

    def test_parse_date_rejects_garbage(self):
        with self.assertRaises(ValueError):
            parse_date("yesterday")
        with self.assertRaises(ValueError):
            parse_date("")


# ─────────────────────────────────────────────
#  ItemStore Tests
# ─────────────────────────────────────────────

class TestItemStore(unittest.TestCase):

    def setUp(self):
        self.a, self.b, self.c = _item("A"), _item("B"), _item("C")
        self.store = ItemStore([self.a, self.b, self.c])

    def ids(self):
        return [item.id for item in self.store.list()]

    def test_replace_all_rejects_duplicates(self):
        with self.assertRaises(ValueError):
            self.store.replace_all([self.a, self.a])
        self.assertEqual(self.ids(), ["A", "B", "C"])

    def test_operations_do_not_alias_prior_sequence(self):
        before = self.store.list()
        self.store.remove("B")
        self.assertEqual([i.id for i in before], ["A", "B", "C"])
        self.assertEqual(self.ids(), ["A", "C"])

    def test_remove_returns_insert_token(self):
        token = self.store.remove("B")
        self.assertEqual(token, Insert(self.b, 1))

    def test_remove_unknown_is_none(self):
        self.assertIsNone(self.store.remove("Z"))
        self.assertEqual(self.ids(), ["A", "B", "C"])

    def test_rollback_insert_restores_original_index(self):
        token = self.store.remove("B")
        self.store.rollback(token)
        self.assertEqual(self.store.list(), (self.a, self.b, self.c))

    def test_rollback_insert_skips_when_present(self):
        token = self.store.remove("B")
        self.store.upsert(self.b)
        self.store.rollback(token)
        self.assertEqual(self.ids(), ["A", "C", "B"])

    def test_upsert_new_appends_with_remove_token(self):
        d = _item("D")
        token = self.store.upsert(d)
        self.assertEqual(self.ids(), ["A", "B", "C", "D"])
        self.assertEqual(token, Remove("D"))
        self.store.rollback(token)
        self.assertEqual(self.ids(), ["A", "B", "C"])

    def test_upsert_existing_replaces_in_place(self):
        renamed = _item("B", title="/renamed")
        token = self.store.upsert(renamed)
        self.assertEqual(self.store.get("B").title, "/renamed")
        self.assertEqual(self.store.index_of("B"), 1)
        self.assertEqual(token, Replace("B", self.b))

    def test_replace_absent_is_noop(self):
        self.assertIsNone(self.store.replace(_item("Z")))
        self.assertEqual(len(self.store), 3)

    def test_patch_and_rollback(self):
        token = self.store.patch("A", title="/patched")
        self.assertEqual(self.store.get("A").title, "/patched")
        self.store.rollback(token)
        self.assertEqual(self.store.get("A"), self.a)

    def test_patch_unknown_is_noop(self):
        before = self.store.list()
        self.assertIsNone(self.store.patch("Z", title="/x"))
        self.assertIs(self.store.list(), before)

    def test_patch_enforces_item_invariant(self):
        with self.assertRaises(ValueError):
            self.store.patch("A", status=ItemStatus.COMPLETED)
        self.assertEqual(self.store.get("A"), self.a)

    def test_rollback_replace_leaves_vanished_item_gone(self):
        token = self.store.replace(self.b.toggled())
        self.store.remove("B")
        self.store.rollback(token)
        self.assertEqual(self.store.list(), (self.a, self.c))

    def test_rollback_none_is_noop(self):
        self.store.rollback(None)
        self.assertEqual(self.ids(), ["A", "B", "C"])

    def test_rollback_rejects_foreign_values(self):
        with self.assertRaises(TypeError):
            self.store.rollback("B")

    def test_contains_and_iteration(self):
        self.assertIn("A", self.store)
        self.assertNotIn("Z", self.store)
        self.assertEqual([i.id for i in self.store], ["A", "B", "C"])

    def test_subscribe_sees_each_commit(self):
        seen = []
        unsubscribe = self.store.subscribe(lambda items: seen.append([i.id for i in items]))
        self.store.remove("A")
        unsubscribe()
        self.store.remove("B")
        self.assertEqual(seen, [["B", "C"]])


if __name__ == "__main__":
    unittest.main(verbosity=2)
