"""Tests for conversation ownership and current selection."""

from __future__ import annotations

import random
import unittest

from gpt_chat.conversation_store import ConversationStore
from gpt_chat.exceptions import ConversationNotFoundError
from gpt_chat.models import DEFAULT_TITLE, Message


class ConversationStoreTests(unittest.TestCase):
    """Validate create/select/delete/append behavior."""

    def setUp(self) -> None:
        self.store = ConversationStore()

    def test_starts_empty_without_selection(self) -> None:
        self.assertEqual(self.store.conversations, ())
        self.assertIsNone(self.store.current())
        self.assertIsNone(self.store.current_id)

    def test_create_inserts_at_head_and_selects(self) -> None:
        first = self.store.create()
        second = self.store.create()
        self.assertEqual([c.id for c in self.store.conversations], [second.id, first.id])
        self.assertIs(self.store.current(), second)
        self.assertEqual(second.title, DEFAULT_TITLE)
        self.assertEqual(second.messages, ())

    def test_create_with_explicit_title(self) -> None:
        self.assertEqual(self.store.create("Notas").title, "Notas")

    def test_custom_default_title(self) -> None:
        store = ConversationStore(default_title="New chat")
        self.assertEqual(store.create().title, "New chat")

    def test_select_changes_current_only(self) -> None:
        first = self.store.create()
        second = self.store.create()
        self.store.select(first.id)
        self.assertEqual(self.store.current_id, first.id)
        self.assertEqual([c.id for c in self.store.conversations], [second.id, first.id])

    def test_select_unknown_id_raises_and_keeps_selection(self) -> None:
        conversation = self.store.create()
        with self.assertRaises(ConversationNotFoundError):
            self.store.select("missing")
        self.assertEqual(self.store.current_id, conversation.id)

    def test_delete_current_clears_selection(self) -> None:
        conversation = self.store.create()
        self.assertTrue(self.store.delete(conversation.id))
        self.assertIsNone(self.store.current())
        self.assertEqual(len(self.store), 0)

    def test_delete_other_keeps_selection(self) -> None:
        first = self.store.create()
        second = self.store.create()
        self.assertTrue(self.store.delete(first.id))
        self.assertEqual(self.store.current_id, second.id)

    def test_delete_unknown_returns_false(self) -> None:
        self.store.create()
        self.assertFalse(self.store.delete("missing"))
        self.assertEqual(len(self.store), 1)

    def test_append_targets_one_conversation(self) -> None:
        first = self.store.create()
        second = self.store.create()
        message = Message.user("hola")
        self.assertTrue(self.store.append_message(first.id, message))
        self.assertEqual(self.store.get(first.id).messages, (message,))  # type: ignore[union-attr]
        self.assertEqual(self.store.get(second.id).messages, ())  # type: ignore[union-attr]

    def test_append_to_deleted_conversation_is_noop(self) -> None:
        conversation = self.store.create()
        self.store.delete(conversation.id)
        self.assertFalse(self.store.append_message(conversation.id, Message.user("x")))
        self.assertEqual(self.store.conversations, ())

    def test_append_does_not_reorder(self) -> None:
        first = self.store.create()
        second = self.store.create()
        self.store.append_message(first.id, Message.user("actividad"))
        self.assertEqual([c.id for c in self.store.conversations], [second.id, first.id])

    def test_snapshot_is_not_live(self) -> None:
        snapshot = self.store.conversations
        self.store.create()
        self.assertEqual(snapshot, ())

    def test_rename(self) -> None:
        conversation = self.store.create()
        self.assertTrue(self.store.rename(conversation.id, "Viaje"))
        self.assertEqual(conversation.title, "Viaje")
        self.assertFalse(self.store.rename("missing", "x"))

    def test_contains(self) -> None:
        conversation = self.store.create()
        self.assertIn(conversation.id, self.store)
        self.assertNotIn("missing", self.store)
        self.assertNotIn(None, self.store)
        self.assertNotIn(123, self.store)

    def test_random_operations_keep_selection_valid(self) -> None:
        rng = random.Random(1234)
        for _ in range(500):
            operation = rng.choice(["create", "delete", "select", "append"])
            ids = [c.id for c in self.store.conversations]
            if operation == "create" or not ids:
                self.store.create()
            elif operation == "delete":
                self.store.delete(rng.choice(ids))
            elif operation == "select":
                self.store.select(rng.choice(ids))
            else:
                self.store.append_message(rng.choice(ids), Message.user("m"))

            current_id = self.store.current_id
            if current_id is not None:
                self.assertIn(current_id, self.store)
            all_ids = [c.id for c in self.store.conversations]
            self.assertEqual(len(all_ids), len(set(all_ids)))


if __name__ == "__main__":
    unittest.main()
