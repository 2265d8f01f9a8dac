"""Tests for settings and conversation persistence."""

from __future__ import annotations

from datetime import UTC, datetime
import json
from pathlib import Path
import tempfile
import unittest

from quick_chat.models import Message, Role
from quick_chat.persistence import (
    CONVERSATION_HISTORY_KEY,
    CURRENT_CONVERSATION_KEY,
    MAX_ARCHIVED_CONVERSATIONS,
    SETTINGS_KEY,
    ChatPersistence,
    normalize_export_format,
)
from quick_chat.settings import DEFAULT_SETTINGS, Settings


def _conversation() -> list[Message]:
    return [
        Message(Role.USER, "Hello", datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)),
        Message(Role.ASSISTANT, "Hi there", datetime(2024, 1, 2, 3, 4, 9, tzinfo=UTC)),
    ]


class SettingsPersistenceTests(unittest.TestCase):
    """Validate settings save/load and credential handling."""

    def test_round_trip_with_credential(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            persistence = ChatPersistence.from_directory(temp_dir)
            settings = Settings(
                credential="AIza-secret",
                model="gemini-1.5-pro",
                temperature=0.3,
                max_output_tokens=512,
                theme="light",
                auto_persist=False,
            )
            self.assertTrue(persistence.save_settings(settings))
            self.assertEqual(persistence.load_settings(), settings)

            raw = persistence.store.path_for(SETTINGS_KEY).read_text(encoding="utf-8")
            self.assertNotIn("AIza-secret", raw)

    def test_missing_settings_yield_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            persistence = ChatPersistence.from_directory(temp_dir)
            self.assertEqual(persistence.load_settings(), DEFAULT_SETTINGS)

    def test_corrupt_settings_yield_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            persistence = ChatPersistence.from_directory(temp_dir)
            persistence.store.path_for(SETTINGS_KEY).write_text("{", encoding="utf-8")
            self.assertEqual(persistence.load_settings(), DEFAULT_SETTINGS)

    def test_partially_invalid_settings_keep_valid_fields(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            persistence = ChatPersistence.from_directory(temp_dir)
            persistence.store.set(
                SETTINGS_KEY, {"model": "unknown", "temperature": 0.1, "theme": "light"}
            )
            loaded = persistence.load_settings()
            self.assertEqual(loaded.model, DEFAULT_SETTINGS.model)
            self.assertEqual(loaded.temperature, 0.1)
            self.assertEqual(loaded.theme, "light")

    def test_save_failure_reports_false(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            blocker = Path(temp_dir) / "blocker"
            blocker.write_text("", encoding="utf-8")
            persistence = ChatPersistence.from_directory(blocker / "state")
            self.assertFalse(persistence.save_settings(DEFAULT_SETTINGS))
            self.assertFalse(persistence.save_conversation(_conversation()))
            self.assertEqual(persistence.load_conversation(), [])


class ConversationPersistenceTests(unittest.TestCase):
    """Validate conversation save, load, clear and archive."""

    def test_round_trip(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            persistence = ChatPersistence.from_directory(temp_dir)
            messages = _conversation()
            self.assertTrue(persistence.save_conversation(messages))
            self.assertEqual(persistence.load_conversation(), messages)

    def test_malformed_entries_are_skipped(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            persistence = ChatPersistence.from_directory(temp_dir)
            persistence.store.set(
                CURRENT_CONVERSATION_KEY,
                [
                    {"role": "user", "content": "ok", "timestamp": "2024-01-01T00:00:00+00:00"},
                    {"role": "robot", "content": "?", "timestamp": "2024-01-01T00:00:00+00:00"},
                    {"role": "assistant", "content": 3, "timestamp": "x"},
                    "garbage",
                ],
            )
            loaded = persistence.load_conversation()
            self.assertEqual([m.content for m in loaded], ["ok"])

    def test_non_list_payload_yields_empty_log(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            persistence = ChatPersistence.from_directory(temp_dir)
            persistence.store.set(CURRENT_CONVERSATION_KEY, {"not": "a list"})
            self.assertEqual(persistence.load_conversation(), [])

    def test_clear(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            persistence = ChatPersistence.from_directory(temp_dir)
            persistence.save_conversation(_conversation())
            self.assertTrue(persistence.clear_conversation())
            self.assertEqual(persistence.load_conversation(), [])

    def test_archive_is_bounded(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            persistence = ChatPersistence.from_directory(temp_dir)
            for index in range(MAX_ARCHIVED_CONVERSATIONS + 5):
                persistence.archive_conversation([Message.user(f"message {index}")])
            history = persistence.load_conversation_history()
            self.assertEqual(len(history), MAX_ARCHIVED_CONVERSATIONS)
            self.assertEqual(history[0]["messages"][0].content, "message 5")
            self.assertEqual(
                history[-1]["messages"][0].content,
                f"message {MAX_ARCHIVED_CONVERSATIONS + 4}",
            )
            raw = persistence.store.get(CONVERSATION_HISTORY_KEY)
            self.assertEqual(len(raw), MAX_ARCHIVED_CONVERSATIONS)

    def test_archiving_empty_log_is_noop(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            persistence = ChatPersistence.from_directory(temp_dir)
            self.assertTrue(persistence.archive_conversation([]))
            self.assertEqual(persistence.load_conversation_history(), [])


class ExportTests(unittest.TestCase):
    """Validate json, text and markdown exports."""

    def setUp(self) -> None:
        self._temp_dir = tempfile.TemporaryDirectory()
        self.persistence = ChatPersistence.from_directory(self._temp_dir.name)

    def tearDown(self) -> None:
        self._temp_dir.cleanup()

    def test_json_export_round_trips(self) -> None:
        messages = _conversation()
        exported = self.persistence.export_conversation(messages, "json")
        assert exported is not None
        decoded = json.loads(exported)
        self.assertEqual(decoded, [message.to_dict() for message in messages])
        self.assertEqual([Message.from_dict(item) for item in decoded], messages)

    def test_text_export(self) -> None:
        exported = self.persistence.export_conversation(_conversation(), "txt")
        assert exported is not None
        lines = exported.splitlines()
        self.assertEqual(len(lines), 2)
        self.assertTrue(lines[0].startswith("["))
        self.assertTrue(lines[0].endswith("] You: Hello"))
        self.assertTrue(lines[1].endswith("] AI: Hi there"))

    def test_markdown_export(self) -> None:
        exported = self.persistence.export_conversation(_conversation(), "md")
        assert exported is not None
        self.assertTrue(exported.startswith("# Conversation Export"))
        self.assertIn("### **You**", exported)
        self.assertIn("### **AI Assistant**", exported)
        self.assertIn("Hi there", exported)

    def test_empty_markdown_export_has_title_and_timestamp(self) -> None:
        moment = datetime(2024, 6, 1, 8, 30, tzinfo=UTC)
        exported = self.persistence.export_conversation([], "markdown", exported_at=moment)
        assert exported is not None
        self.assertIn("# Conversation Export", exported)
        expected = moment.astimezone().strftime("%Y-%m-%d %H:%M:%S")
        self.assertIn(f"*Exported on {expected}*", exported)

    def test_unsupported_format_returns_none(self) -> None:
        self.assertIsNone(self.persistence.export_conversation(_conversation(), "pdf"))

    def test_normalize_export_format(self) -> None:
        self.assertEqual(normalize_export_format(" MD "), "markdown")
        self.assertEqual(normalize_export_format("txt"), "text")
        self.assertEqual(normalize_export_format("json"), "json")
        self.assertIsNone(normalize_export_format("csv"))


if __name__ == "__main__":
    unittest.main()
