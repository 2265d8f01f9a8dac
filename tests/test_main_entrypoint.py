"""Tests for CLI entrypoint wiring."""

from __future__ import annotations

import contextlib
import io
import json
from pathlib import Path
import tempfile
import unittest
from unittest.mock import patch

from quick_chat.__main__ import main
from quick_chat.models import Message
from quick_chat.persistence import ChatPersistence


class MainEntrypointTests(unittest.TestCase):
    """Validate top-level main() behavior."""

    def test_main_ensures_config_and_runs_app(self) -> None:
        with patch("quick_chat.__main__.ensure_config_dir") as ensure_mock, patch(
            "quick_chat.__main__.QuickChatApp"
        ) as app_cls_mock:
            app_instance = app_cls_mock.return_value
            self.assertEqual(main([]), 0)
            ensure_mock.assert_called_once()
            app_cls_mock.assert_called_once_with(config_path=None)
            app_instance.run.assert_called_once()

    def test_version_flag_prints_and_exits(self) -> None:
        buffer = io.StringIO()
        with patch("quick_chat.__main__.QuickChatApp") as app_cls_mock, contextlib.redirect_stdout(
            buffer
        ):
            self.assertEqual(main(["--version"]), 0)
        app_cls_mock.assert_not_called()
        self.assertTrue(buffer.getvalue().startswith("quick-chat "))

    def test_export_flag_prints_saved_conversation(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            base = Path(temp_dir)
            state_dir = base / "state"
            config_path = base / "config.toml"
            config_path.write_text(
                f'[storage]\ndirectory = "{state_dir.as_posix()}"\n', encoding="utf-8"
            )
            ChatPersistence.from_directory(state_dir).save_conversation(
                [Message.user("ping"), Message.assistant("pong")]
            )

            buffer = io.StringIO()
            with patch("quick_chat.__main__.QuickChatApp") as app_cls_mock, contextlib.redirect_stdout(
                buffer
            ):
                code = main(["--config", str(config_path), "--export", "json"])

            self.assertEqual(code, 0)
            app_cls_mock.assert_not_called()
            exported = json.loads(buffer.getvalue())
            self.assertEqual([item["content"] for item in exported], ["ping", "pong"])


if __name__ == "__main__":
    unittest.main()
