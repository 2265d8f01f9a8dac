"""Tests for the JSON key/value store."""

from __future__ import annotations

import os
from pathlib import Path
import stat
import tempfile
import unittest

from quick_chat.exceptions import PersistenceError
from quick_chat.store import KeyValueStore


class KeyValueStoreTests(unittest.TestCase):
    def test_set_get_delete(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            store = KeyValueStore(Path(temp_dir) / "state")
            self.assertIsNone(store.get("quick-chat-current"))
            store.set("quick-chat-current", [{"role": "user"}])
            self.assertEqual(store.get("quick-chat-current"), [{"role": "user"}])
            store.delete("quick-chat-current")
            self.assertIsNone(store.get("quick-chat-current"))
            store.delete("quick-chat-current")

    def test_invalid_key_is_rejected(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            store = KeyValueStore(temp_dir)
            with self.assertRaises(PersistenceError):
                store.set("../escape", 1)

    def test_corrupt_document_raises(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            store = KeyValueStore(temp_dir)
            store.path_for("broken").write_text("{not json", encoding="utf-8")
            with self.assertRaises(PersistenceError):
                store.get("broken")

    def test_unwritable_directory_raises(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            blocker = Path(temp_dir) / "blocker"
            blocker.write_text("", encoding="utf-8")
            store = KeyValueStore(blocker / "state")
            with self.assertRaises(PersistenceError):
                store.set("value", 1)

    @unittest.skipIf(os.name != "posix", "POSIX permissions only")
    def test_documents_are_private(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            store = KeyValueStore(Path(temp_dir) / "state")
            store.set("value", {"a": 1})
            mode = stat.S_IMODE(store.path_for("value").stat().st_mode)
            self.assertEqual(mode, 0o600)


if __name__ == "__main__":
    unittest.main()
